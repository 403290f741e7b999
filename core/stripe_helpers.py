# core/stripe_helpers.py

from typing import Optional, Dict

import stripe

from core.config import settings
from core.errors import UpstreamError, WebhookSignatureError
from core.logging_config import logger
from core.validators import validate_plan


# Built-in prices, chosen by key mode unless STRIPE_*_PRICE_ID overrides them
TEST_PRICE_IDS = {
    "monthly": "price_1SMzASLC1RJAUbjMZVUqQCY0",
    "yearly": "price_1SMzB3LC1RJAUbjMB57Ph1dI",
}
LIVE_PRICE_IDS = {
    "monthly": "price_1SMce8LC1RJAUbjMf3MZyCav",
    "yearly": "price_1SMcgxLC1RJAUbjMCsGkOzCK",
}

CUSTOMER_DESCRIPTION = "Asine Property Manager"


class StripeGateway:
    """
    The slice of the Stripe API used by the subscription flow:
    customers, subscription checkout sessions and webhook verification.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        monthly_price_id: Optional[str] = None,
        yearly_price_id: Optional[str] = None,
        site_url: Optional[str] = None,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.price_overrides = {
            "monthly": monthly_price_id,
            "yearly": yearly_price_id,
        }
        self.site_url = (site_url or "http://localhost:5174").rstrip("/")

    @classmethod
    def from_settings(cls) -> "StripeGateway":
        return cls(
            secret_key=settings.STRIPE_SECRET_KEY,
            webhook_secret=settings.STRIPE_WEBHOOK_SECRET,
            monthly_price_id=settings.STRIPE_MONTHLY_PRICE_ID,
            yearly_price_id=settings.STRIPE_YEARLY_PRICE_ID,
            site_url=settings.SITE_URL,
        )

    @property
    def test_mode(self) -> bool:
        return bool(self.secret_key and self.secret_key.startswith("sk_test_"))

    def _client(self):
        if not self.secret_key:
            raise UpstreamError("stripe_config", "Stripe secret key not configured")
        stripe.api_key = self.secret_key
        return stripe

    # -----------------------------------------------------
    # Prices
    # -----------------------------------------------------
    def resolve_price_id(self, plan: str) -> str:
        validate_plan(plan)
        override = self.price_overrides.get(plan)
        if override:
            return override
        prices = TEST_PRICE_IDS if self.test_mode else LIVE_PRICE_IDS
        return prices[plan]

    # -----------------------------------------------------
    # Customers
    # -----------------------------------------------------
    def create_customer(self, email: str, name: str, property_name: str) -> str:
        client = self._client()
        try:
            customer = client.Customer.create(
                name=name,
                email=email,
                metadata={"property_name": property_name},
                description=CUSTOMER_DESCRIPTION,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe API error creating customer for {email}: {e}")
            raise UpstreamError(
                "stripe_customer",
                f"Stripe error: {e.user_message or str(e)}",
                status_code=e.http_status or 500,
            )

        logger.info(f"Created Stripe customer {customer.id} for {email}")
        return customer.id

    # -----------------------------------------------------
    # Checkout
    # -----------------------------------------------------
    def create_checkout_session(
        self,
        customer_id: str,
        plan: str,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Dict[str, str]:
        """
        Subscription-mode checkout. user_id / plan / email ride along in the
        metadata so the webhook can reconcile the profile afterwards.
        """
        price_id = self.resolve_price_id(plan)
        client = self._client()

        metadata = {"plan": plan}
        if user_id:
            metadata["user_id"] = user_id
        if email:
            metadata["email"] = email
        if name:
            metadata["name"] = name

        try:
            session = client.checkout.Session.create(
                customer=customer_id,
                mode="subscription",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                metadata=metadata,
                subscription_data={"metadata": dict(metadata)},
                success_url=f"{self.site_url}?session_id={{CHECKOUT_SESSION_ID}}&payment=success",
                cancel_url=f"{self.site_url}?payment=cancelled",
                allow_promotion_codes=True,
                billing_address_collection="required",
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe API error creating checkout session for customer {customer_id}: {e}")
            raise UpstreamError(
                "checkout_session",
                f"Stripe error: {e.user_message or str(e)}",
                status_code=e.http_status or 500,
            )

        logger.info(f"Created checkout session {session.id} ({plan}) for customer {customer_id}")
        return {"url": session.url, "session_id": session.id}

    # -----------------------------------------------------
    # Webhooks
    # -----------------------------------------------------
    def construct_event(self, payload: bytes, signature: Optional[str]):
        """
        Verify the Stripe-Signature header over the raw body.
        Signature verification is the only access control on the webhook.
        """
        if not self.webhook_secret:
            logger.error("Stripe webhook secret not configured - rejecting event")
            raise WebhookSignatureError("Webhook secret not configured", status_code=500)

        if not signature:
            raise WebhookSignatureError("Missing stripe-signature header")

        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as e:
            logger.error(f"Invalid payload in webhook: {e}")
            raise WebhookSignatureError("Invalid payload")
        except stripe.SignatureVerificationError as e:
            logger.error(f"Invalid signature in webhook: {e}")
            raise WebhookSignatureError("Invalid signature")
