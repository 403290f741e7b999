# routers/stripe_webhooks.py

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from dependencies.services import get_webhook_service
from services.stripe_webhook_service import StripeWebhookService


router = APIRouter(
    tags=["Webhooks"],
)


@router.post("/stripe-webhook")
async def handle_stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="stripe-signature"),
    service: StripeWebhookService = Depends(get_webhook_service),
):
    """
    Handle Stripe billing events.

    Processed events:
    - checkout.session.completed
    - invoice.paid
    - customer.subscription.created

    Anything else is acknowledged with 200 and ignored.

    **Setup:**
    1. Add `https://your-api.com/stripe-webhook` as an endpoint in the Stripe Dashboard
    2. Select the three events above
    3. Put the endpoint's signing secret in `STRIPE_WEBHOOK_SECRET`

    **Security:**
    - No bearer auth; the Stripe-Signature header is verified against the raw body
    """
    body = await request.body()
    return service.handle(body, stripe_signature)
