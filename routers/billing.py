# routers/billing.py

from fastapi import APIRouter, Depends

from dependencies.services import get_payments_only_provisioner
from models.provisioning import (
    CreateCheckoutRequest,
    CreateCustomerRequest,
    CreateSubscriptionRequest,
)
from services.account_provisioning import AccountProvisioner
from core.validators import require_fields, validate_email


router = APIRouter(
    tags=["Billing"],
)


@router.post("/create-stripe-customer", summary="Create Stripe customer for a PM")
def create_stripe_customer(
    payload: CreateCustomerRequest,
    provisioner: AccountProvisioner = Depends(get_payments_only_provisioner),
):
    customer_id = provisioner.create_customer(payload.email, payload.name, payload.property_name)
    return {
        "success": True,
        "customer_id": customer_id,
        "message": "Stripe customer created successfully",
    }


@router.post("/create-checkout-session", summary="Create subscription checkout session")
def create_checkout_session(
    payload: CreateCheckoutRequest,
    provisioner: AccountProvisioner = Depends(get_payments_only_provisioner),
):
    session = provisioner.create_checkout(
        payload.customer_id,
        payload.plan,
        user_id=payload.user_id,
        email=payload.email,
    )
    return {"success": True, "url": session.url, "session_id": session.session_id}


@router.post("/create-subscription", summary="Create checkout session for a registered PM")
def create_subscription(
    payload: CreateSubscriptionRequest,
    provisioner: AccountProvisioner = Depends(get_payments_only_provisioner),
):
    """
    Same as /create-checkout-session but user_id and email are required,
    so the webhook can always reconcile the resulting payment.
    """
    require_fields(
        payload.model_dump(),
        ("user_id", "email", "stripe_customer_id", "plan"),
    )
    email = validate_email(payload.email)

    session = provisioner.create_checkout(
        payload.stripe_customer_id,
        payload.plan,
        user_id=payload.user_id,
        email=email,
    )
    return {"success": True, "url": session.url, "session_id": session.session_id}
