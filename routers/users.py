# routers/users.py

from fastapi import APIRouter, Depends

from dependencies.services import get_account_provisioner
from models.provisioning import CreateUserRequest, RegisterRequest
from services.account_provisioning import AccountProvisioner


router = APIRouter(
    tags=["Registration"],
)


# -----------------------------------------------------
# POST /create-user
# Auth account + PM profile row (no payment yet)
# -----------------------------------------------------
@router.post("/create-user", summary="Public: Create PM account and profile")
def create_user(
    payload: CreateUserRequest,
    provisioner: AccountProvisioner = Depends(get_account_provisioner),
):
    account = provisioner.create_account(payload)
    return {
        "success": True,
        "user_id": account.user_id,
        "role": account.role,
        "message": "User account and profile created successfully with PM role",
    }


# -----------------------------------------------------
# POST /register
# Full self-service flow, ending at a Stripe checkout URL
# -----------------------------------------------------
@router.post("/register", summary="Public: Register a PM and start checkout")
def register(
    payload: RegisterRequest,
    provisioner: AccountProvisioner = Depends(get_account_provisioner),
):
    """
    Runs create-user, create-stripe-customer and create-checkout-session
    in one call. The browser redirects to `url` to pay.
    """
    result = provisioner.register(payload)
    return {
        "success": True,
        "user_id": result.user_id,
        "customer_id": result.customer_id,
        "url": result.url,
        "session_id": result.session_id,
    }
