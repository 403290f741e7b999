# services/stripe_webhook_service.py

"""
Stripe webhook reconciliation.

Every branch writes known-final state (subscribed=true, status=active,
plan, customer id) rather than incrementing anything, so Stripe may
redeliver an event any number of times.
"""

import json
from typing import Optional, Dict, Any

from supabase import Client

from core import profile_store
from core.errors import UpstreamError, WebhookPayloadError, extract_supabase_error
from core.logging_config import logger
from core.stripe_helpers import StripeGateway
from models.enums import SubscriptionStatus
from services.email_verification import EmailVerificationService


CHECKOUT_COMPLETED = "checkout.session.completed"
INVOICE_PAID = "invoice.paid"
SUBSCRIPTION_CREATED = "customer.subscription.created"


def _object_id(value) -> Optional[str]:
    """Stripe fields like `customer` are either an id or an expanded object."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


class StripeWebhookService:

    def __init__(
        self,
        client: Client,
        payments: StripeGateway,
        verification: EmailVerificationService,
    ):
        self.client = client
        self.payments = payments
        self.verification = verification

    def handle(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        self.payments.construct_event(payload, signature)

        try:
            event = json.loads(payload.decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            logger.error(f"Invalid JSON in webhook payload: {e}")
            raise WebhookPayloadError("Invalid JSON payload")

        event_type = event.get("type")
        data = (event.get("data") or {}).get("object") or {}

        logger.info(f"Received Stripe webhook event: {event_type} ({event.get('id')})")

        if event_type == CHECKOUT_COMPLETED:
            self._checkout_completed(data)
        elif event_type == INVOICE_PAID:
            self._invoice_paid(data)
        elif event_type == SUBSCRIPTION_CREATED:
            self._subscription_created(data)
        else:
            logger.debug(f"Ignoring webhook event type: {event_type}")
            return {
                "success": True,
                "event": event_type,
                "message": "Event received but not processed",
            }

        return {
            "success": True,
            "event": event_type,
            "message": "Subscription activated",
        }

    # -----------------------------------------------------
    # Shared reconciliation
    # -----------------------------------------------------
    def _activate(self, user_id: str, customer_id: str, plan: Optional[str]) -> Optional[Dict[str, Any]]:
        fields = {
            "subscribed": True,
            "subscription_status": SubscriptionStatus.active.value,
            "stripe_customer_id": customer_id,
        }
        if plan:
            fields["plan"] = plan

        profile = profile_store.update_profile(self.client, user_id, fields)
        if profile:
            logger.info(f"Activated subscription for {user_id} (plan={plan}, customer={customer_id})")
        else:
            logger.warning(f"No profile {user_id} to activate for customer {customer_id}")
        return profile

    # -----------------------------------------------------
    # checkout.session.completed
    # -----------------------------------------------------
    def _checkout_completed(self, session: Dict[str, Any]) -> None:
        metadata = session.get("metadata") or {}
        user_id = metadata.get("user_id")
        plan = metadata.get("plan") or metadata.get("plan_type")
        customer_id = _object_id(session.get("customer"))

        if not user_id or not customer_id:
            logger.error(
                f"Checkout session {session.get('id')} missing metadata: "
                f"user_id={user_id!r}, customer={customer_id!r}"
            )
            raise WebhookPayloadError("Missing required metadata")

        try:
            self._activate(user_id, customer_id, plan)
        except Exception as e:
            logger.error(f"Failed to update user {user_id}: {extract_supabase_error(e)}")
            raise UpstreamError("subscription_update", "Failed to update user")

        subscription_id = _object_id(session.get("subscription"))
        if subscription_id:
            try:
                profile_store.upsert_subscription_record(
                    self.client, user_id, customer_id, subscription_id, plan
                )
            except Exception as e:
                logger.error(f"Error recording subscription {subscription_id}: {extract_supabase_error(e)}")

        details = session.get("customer_details") or {}
        self.verification.start_verification(
            user_id,
            email=details.get("email") or metadata.get("email"),
            name=details.get("name") or metadata.get("name"),
        )

    # -----------------------------------------------------
    # invoice.paid
    # -----------------------------------------------------
    def _invoice_paid(self, invoice: Dict[str, Any]) -> None:
        customer_id = _object_id(invoice.get("customer"))
        if not customer_id:
            logger.info(f"Invoice {invoice.get('id')} has no customer - nothing to reconcile")
            return

        try:
            rows = profile_store.update_by_customer(
                self.client,
                customer_id,
                {"subscribed": True, "subscription_status": SubscriptionStatus.active.value},
            )
        except Exception as e:
            logger.error(f"Error updating subscription for customer {customer_id}: {extract_supabase_error(e)}")
            return

        if rows:
            logger.info(f"Invoice paid - {len(rows)} profile(s) active for customer {customer_id}")
        else:
            logger.info(f"Invoice paid for unknown customer {customer_id} - ignored")

    # -----------------------------------------------------
    # customer.subscription.created
    # -----------------------------------------------------
    def _subscription_created(self, subscription: Dict[str, Any]) -> None:
        metadata = subscription.get("metadata") or {}
        user_id = metadata.get("user_id")
        customer_id = _object_id(subscription.get("customer"))

        plan = metadata.get("plan")
        if not plan:
            items = (subscription.get("items") or {}).get("data") or []
            if items:
                plan = (items[0].get("price") or {}).get("nickname")

        if not user_id or not customer_id:
            logger.info(f"Subscription {subscription.get('id')} has no user metadata - skipped")
            return

        try:
            self._activate(user_id, customer_id, plan)
        except Exception as e:
            logger.error(f"Error updating user {user_id} from subscription event: {extract_supabase_error(e)}")
