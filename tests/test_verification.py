# tests/test_verification.py

"""
Tests for email verification: issuing tokens, /verify-email and
/send-verification-email.
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from core import profile_store
from core.errors import InvalidTokenError, UpstreamError
from services.email_verification import EmailVerificationService, generate_verification_token
from tests.fakes import FakeAuthError, FakeMailer, FakeSupabase


def _iso(delta: timedelta) -> str:
    return (profile_store.utc_now() + delta).isoformat()


@pytest.fixture
def unverified_pm(fake_supabase):
    user = fake_supabase.add_auth_user("pm@example.com", role="pm")
    user.email_confirmed = False
    return fake_supabase.add_profile(
        id=user.id,
        email="pm@example.com",
        name="Leilani Kahale",
        role="pm",
        email_verified=False,
        verification_token="tok_valid",
        verification_token_expires_at=_iso(timedelta(hours=20)),
    )


# -----------------------------------------------------
# GET /verify-email
# -----------------------------------------------------
def test_verify_email_success(client: TestClient, fake_supabase, unverified_pm):
    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Email verified successfully! You can now sign in.",
        "user_id": unverified_pm["id"],
    }

    profile = fake_supabase.profile(unverified_pm["id"])
    assert profile["email_verified"] is True
    assert profile["verification_token"] is None
    assert profile["verification_token_expires_at"] is None
    assert fake_supabase.auth_users[unverified_pm["id"]].email_confirmed is True


def test_verify_email_token_is_single_use(client: TestClient, unverified_pm):
    client.get("/verify-email", params={"token": "tok_valid"})

    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid or expired verification token")


def test_verify_email_missing_token(client: TestClient, fake_supabase):
    response = client.get("/verify-email")

    assert response.status_code == 400
    assert "Missing verification token" in response.json()["error"]
    assert fake_supabase.calls == []


def test_verify_email_unknown_token(client: TestClient, unverified_pm):
    response = client.get("/verify-email", params={"token": "tok_unknown"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_verify_email_expired_token(client: TestClient, fake_supabase, unverified_pm):
    unverified_pm["verification_token_expires_at"] = _iso(timedelta(minutes=-1))

    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 400
    assert fake_supabase.profile(unverified_pm["id"])["email_verified"] is False


def test_verify_email_already_verified(client: TestClient, unverified_pm):
    unverified_pm["email_verified"] = True

    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 200
    data = response.json()
    assert data["already_verified"] is True
    assert data["message"] == "Email already verified. You can sign in now."


def test_verify_email_lookup_failure(client: TestClient, fake_supabase, unverified_pm):
    fake_supabase.fail("users", "select")

    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 500
    assert response.json()["step"] == "verification_lookup"


def test_verify_email_update_failure(client: TestClient, fake_supabase, unverified_pm):
    fake_supabase.fail("users", "update")

    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to verify email. Please try again."


def test_verify_email_auth_mirror_failure_is_not_fatal(client: TestClient, fake_supabase, unverified_pm):
    fake_supabase.update_user_error = FakeAuthError("User not found", code="user_not_found", status=404)

    response = client.get("/verify-email", params={"token": "tok_valid"})

    assert response.status_code == 200
    assert fake_supabase.profile(unverified_pm["id"])["email_verified"] is True


def test_verify_concurrent_consume_loses(fake_supabase, unverified_pm):
    service = EmailVerificationService(fake_supabase, FakeMailer())

    with patch("core.profile_store.consume_verification_token", return_value=None):
        with pytest.raises(InvalidTokenError):
            service.verify("tok_valid")


def test_expired_token_accepted_when_expiry_not_enforced(fake_supabase, unverified_pm):
    unverified_pm["verification_token_expires_at"] = _iso(timedelta(hours=-2))
    service = EmailVerificationService(fake_supabase, FakeMailer(), enforce_expiry=False)

    result = service.verify("tok_valid")

    assert result["success"] is True


# -----------------------------------------------------
# start_verification (called from the webhook)
# -----------------------------------------------------
def test_generated_tokens_are_unique_and_url_safe():
    tokens = {generate_verification_token() for _ in range(50)}

    assert len(tokens) == 50
    assert all(len(t) >= 43 and "/" not in t and "+" not in t for t in tokens)


def test_start_verification_issues_new_token_when_expired():
    db = FakeSupabase()
    db.add_profile(
        id="user-1",
        email="pm@example.com",
        email_verified=False,
        verification_token="tok_old",
        verification_token_expires_at=_iso(timedelta(hours=-1)),
    )
    mailer = FakeMailer()

    token = EmailVerificationService(db, mailer).start_verification("user-1")

    assert token and token != "tok_old"
    assert db.profile("user-1")["verification_token"] == token
    assert mailer.sent[0]["to"] == "pm@example.com"
    assert "Hi Property Manager" in mailer.sent[0]["text"]


def test_start_verification_no_email_when_token_not_saved():
    db = FakeSupabase()
    db.add_profile(id="user-1", email="pm@example.com", email_verified=False)
    db.fail("users", "update")
    mailer = FakeMailer()

    token = EmailVerificationService(db, mailer).start_verification("user-1", email="pm@example.com")

    assert token is None
    assert mailer.sent == []


def test_start_verification_without_profile_row():
    db = FakeSupabase()
    mailer = FakeMailer()

    token = EmailVerificationService(db, mailer).start_verification("user-404", email="pm@example.com")

    assert token is None
    assert mailer.sent == []


def test_start_verification_without_any_email():
    db = FakeSupabase()
    db.add_profile(id="user-1", email_verified=False)
    mailer = FakeMailer()

    token = EmailVerificationService(db, mailer).start_verification("user-1")

    assert token is None
    assert db.profile("user-1")["verification_token"]
    assert mailer.sent == []


def test_start_verification_lookup_failure_uses_given_address():
    db = FakeSupabase()
    db.add_profile(id="user-1", email="pm@example.com", email_verified=False)
    db.fail("users", "select")
    mailer = FakeMailer()

    token = EmailVerificationService(db, mailer).start_verification(
        "user-1", email="pm@example.com", name="Leilani"
    )

    assert token
    assert mailer.sent[0]["to"] == "pm@example.com"


# -----------------------------------------------------
# POST /send-verification-email
# -----------------------------------------------------
SEND_BODY = {"email": "pm@example.com", "name": "Leilani", "token": "tok_123"}


def test_send_verification_email_requires_service_role(client: TestClient, fake_mailer):
    response = client.post("/send-verification-email", json=SEND_BODY)

    assert response.status_code == 401
    assert fake_mailer.sent == []


def test_send_verification_email_rejects_other_bearer(client: TestClient, fake_mailer):
    response = client.post(
        "/send-verification-email",
        json=SEND_BODY,
        headers={"Authorization": "Bearer some-user-jwt"},
    )

    assert response.status_code == 401
    assert fake_mailer.sent == []


def test_send_verification_email_unconfigured_service_role(client: TestClient, test_settings):
    test_settings.SUPABASE_SERVICE_ROLE_KEY = None

    response = client.post(
        "/send-verification-email",
        json=SEND_BODY,
        headers={"Authorization": "Bearer anything"},
    )

    assert response.status_code == 500


def test_send_verification_email(client: TestClient, fake_mailer, service_headers):
    response = client.post(
        "/send-verification-email",
        json={**SEND_BODY, "subject": "Finish setting up Asine"},
        headers=service_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Verification email sent successfully"}
    message = fake_mailer.sent[0]
    assert message["subject"] == "Finish setting up Asine"
    assert "https://admin.example.test/verify?token=tok_123" in message["text"]


def test_send_verification_email_default_subject(client: TestClient, fake_mailer, service_headers):
    client.post("/send-verification-email", json=SEND_BODY, headers=service_headers)

    assert fake_mailer.sent[0]["subject"] == "Activate your Asine account"


def test_send_verification_email_missing_fields(client: TestClient, fake_mailer, service_headers):
    response = client.post(
        "/send-verification-email",
        json={"email": "pm@example.com", "name": "Leilani"},
        headers=service_headers,
    )

    assert response.status_code == 400
    assert fake_mailer.sent == []


def test_send_verification_email_mailgun_failure(client: TestClient, fake_mailer, service_headers):
    fake_mailer.error = UpstreamError(
        "email_dispatch", "Mailgun authentication failed (401).", status_code=502
    )

    response = client.post("/send-verification-email", json=SEND_BODY, headers=service_headers)

    assert response.status_code == 502
    assert response.json()["step"] == "email_dispatch"
