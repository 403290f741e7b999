# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import pytest
from fastapi.testclient import TestClient
from typing import Generator

from core.config import settings
from core.retry import RetryPolicy
from core.stripe_helpers import StripeGateway
from dependencies.services import (
    get_mailer,
    get_payment_gateway,
    get_retry_policy,
    get_supabase,
)
from main import create_app
from tests.fakes import FakeMailer, FakePayments, FakeSupabase


WEBHOOK_SECRET = "whsec_test_secret"
SERVICE_ROLE_KEY = "service-role-test-key"


@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings regardless of the local .env."""
    monkeypatch.setattr(settings, "SUPABASE_SERVICE_ROLE_KEY", SERVICE_ROLE_KEY)
    monkeypatch.setattr(settings, "BASE_URL", "https://admin.example.test")
    monkeypatch.setattr(settings, "VERIFICATION_TOKEN_TTL_HOURS", 24)
    monkeypatch.setattr(settings, "ENFORCE_VERIFICATION_EXPIRY", True)
    monkeypatch.setattr(settings, "ENV", "test")
    yield settings


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def fake_payments():
    return FakePayments()


@pytest.fixture
def fake_mailer():
    return FakeMailer()


@pytest.fixture
def no_wait_retry():
    return RetryPolicy(max_attempts=3, delay_seconds=0)


@pytest.fixture(scope="function")
def app(fake_supabase, fake_payments, fake_mailer, no_wait_retry):
    """Create a test FastAPI application instance wired to the fakes."""
    app = create_app()
    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    app.dependency_overrides[get_payment_gateway] = lambda: fake_payments
    app.dependency_overrides[get_mailer] = lambda: fake_mailer
    app.dependency_overrides[get_retry_policy] = lambda: no_wait_retry
    yield app
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def stripe_gateway():
    """Real gateway, so webhook signatures are checked by the Stripe SDK."""
    return StripeGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)


@pytest.fixture
def webhook_client(app, stripe_gateway) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_payment_gateway] = lambda: stripe_gateway
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def service_headers():
    return {"Authorization": f"Bearer {SERVICE_ROLE_KEY}"}
