# tests/test_billing.py

"""
Tests for the Stripe-only endpoints and StripeGateway request shaping.
"""

from unittest.mock import Mock, patch

import pytest
import stripe
from fastapi.testclient import TestClient

from core.errors import UpstreamError, ValidationError
from core.stripe_helpers import LIVE_PRICE_IDS, TEST_PRICE_IDS, StripeGateway
from tests.fakes import stripe_error


# -----------------------------------------------------
# POST /create-stripe-customer
# -----------------------------------------------------
def test_create_stripe_customer(client: TestClient, fake_payments, fake_supabase):
    response = client.post(
        "/create-stripe-customer",
        json={"email": "PM@example.com", "name": "Leilani", "property_name": "Kapiolani Towers"},
    )

    assert response.status_code == 200
    assert response.json()["customer_id"] == "cus_test_1"
    assert fake_payments.customers[0]["email"] == "pm@example.com"
    # Stripe-only route
    assert fake_supabase.calls == []


def test_create_stripe_customer_upstream_error(client: TestClient, fake_payments):
    fake_payments.customer_error = stripe_error("Invalid API Key provided", status=401)

    response = client.post(
        "/create-stripe-customer",
        json={"email": "pm@example.com", "name": "Leilani", "property_name": "Kapiolani Towers"},
    )

    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "error": "Stripe error: Invalid API Key provided",
        "step": "stripe_customer",
    }


# -----------------------------------------------------
# POST /create-checkout-session
# -----------------------------------------------------
def test_create_checkout_session(client: TestClient, fake_payments):
    response = client.post(
        "/create-checkout-session",
        json={"customer_id": "cus_123", "plan": "monthly", "user_id": "user-9"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["session_id"] == "cs_test_1"
    assert fake_payments.sessions[0]["user_id"] == "user-9"


def test_create_checkout_session_invalid_plan(client: TestClient, fake_payments):
    response = client.post(
        "/create-checkout-session",
        json={"customer_id": "cus_123", "plan": "lifetime"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == 'Invalid plan. Must be "monthly" or "yearly"'
    assert fake_payments.sessions == []


# -----------------------------------------------------
# POST /create-subscription
# -----------------------------------------------------
def test_create_subscription_accepts_customer_id_alias(client: TestClient, fake_payments):
    response = client.post(
        "/create-subscription",
        json={
            "user_id": "user-9",
            "email": "pm@example.com",
            "customer_id": "cus_123",
            "plan": "yearly",
        },
    )

    assert response.status_code == 200
    session = fake_payments.sessions[0]
    assert session["customer"] == "cus_123"
    assert session["plan"] == "yearly"
    assert session["email"] == "pm@example.com"


def test_create_subscription_requires_user_id(client: TestClient, fake_payments):
    response = client.post(
        "/create-subscription",
        json={"email": "pm@example.com", "stripe_customer_id": "cus_123", "plan": "yearly"},
    )

    assert response.status_code == 400
    assert "user_id" in response.json()["error"]
    assert fake_payments.sessions == []


def test_create_subscription_invalid_email(client: TestClient, fake_payments):
    response = client.post(
        "/create-subscription",
        json={
            "user_id": "user-9",
            "email": "pm@",
            "stripe_customer_id": "cus_123",
            "plan": "yearly",
        },
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid email format"


# -----------------------------------------------------
# StripeGateway
# -----------------------------------------------------
def test_price_ids_follow_key_mode():
    assert StripeGateway(secret_key="sk_test_abc").resolve_price_id("monthly") == TEST_PRICE_IDS["monthly"]
    assert StripeGateway(secret_key="sk_live_abc").resolve_price_id("yearly") == LIVE_PRICE_IDS["yearly"]


def test_price_id_override():
    gateway = StripeGateway(secret_key="sk_test_abc", yearly_price_id="price_custom")

    assert gateway.resolve_price_id("yearly") == "price_custom"
    assert gateway.resolve_price_id("monthly") == TEST_PRICE_IDS["monthly"]


def test_resolve_price_rejects_unknown_plan():
    with pytest.raises(ValidationError):
        StripeGateway(secret_key="sk_test_abc").resolve_price_id("weekly")


def test_gateway_requires_secret_key():
    with pytest.raises(UpstreamError) as exc_info:
        StripeGateway().create_customer("pm@example.com", "Leilani", "Kapiolani Towers")

    assert exc_info.value.step == "stripe_config"


@patch("core.stripe_helpers.stripe.Customer.create")
def test_create_customer_request(mock_create):
    mock_create.return_value = Mock(id="cus_new")
    gateway = StripeGateway(secret_key="sk_test_abc")

    customer_id = gateway.create_customer("pm@example.com", "Leilani", "Kapiolani Towers")

    assert customer_id == "cus_new"
    kwargs = mock_create.call_args.kwargs
    assert kwargs["email"] == "pm@example.com"
    assert kwargs["metadata"] == {"property_name": "Kapiolani Towers"}


@patch("core.stripe_helpers.stripe.Customer.create")
def test_create_customer_wraps_stripe_error(mock_create):
    mock_create.side_effect = stripe.CardError(
        "Your card was declined.", param=None, code="card_declined", http_status=402
    )
    gateway = StripeGateway(secret_key="sk_test_abc")

    with pytest.raises(UpstreamError) as exc_info:
        gateway.create_customer("pm@example.com", "Leilani", "Kapiolani Towers")

    assert exc_info.value.step == "stripe_customer"
    assert exc_info.value.status_code == 402


@patch("core.stripe_helpers.stripe.checkout.Session.create")
def test_checkout_session_carries_reconciliation_metadata(mock_create):
    mock_create.return_value = Mock(id="cs_new", url="https://checkout.stripe.com/c/pay/cs_new")
    gateway = StripeGateway(secret_key="sk_test_abc", site_url="https://admin.example.test/subscribe/")

    session = gateway.create_checkout_session(
        "cus_123", "monthly", user_id="user-9", email="pm@example.com", name="Leilani"
    )

    assert session == {"url": "https://checkout.stripe.com/c/pay/cs_new", "session_id": "cs_new"}
    kwargs = mock_create.call_args.kwargs
    assert kwargs["mode"] == "subscription"
    assert kwargs["customer"] == "cus_123"
    assert kwargs["line_items"] == [{"price": TEST_PRICE_IDS["monthly"], "quantity": 1}]
    assert kwargs["metadata"] == {
        "plan": "monthly",
        "user_id": "user-9",
        "email": "pm@example.com",
        "name": "Leilani",
    }
    assert kwargs["subscription_data"]["metadata"]["user_id"] == "user-9"
    assert kwargs["success_url"] == (
        "https://admin.example.test/subscribe?session_id={CHECKOUT_SESSION_ID}&payment=success"
    )
    assert kwargs["cancel_url"] == "https://admin.example.test/subscribe?payment=cancelled"
