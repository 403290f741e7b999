# models/user.py

from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from models.enums import UserRole, SubscriptionStatus


# ===============================================================
# PROFILE STORE (public.users)
# ===============================================================

class UserProfile(BaseModel):
    """
    Mirrors a row of the `users` profile table.
    `id` is shared with the Supabase Auth account.
    """
    id: str
    name: Optional[str] = None
    email: str
    property_name: Optional[str] = None
    role: UserRole = UserRole.pm

    approved: bool = False
    subscribed: bool = False
    subscription_status: Optional[SubscriptionStatus] = SubscriptionStatus.pending
    plan: Optional[str] = None
    stripe_customer_id: Optional[str] = None

    email_verified: bool = False
    verification_token: Optional[str] = None
    verification_token_expires_at: Optional[datetime] = None


def new_pm_profile_fields(name: str, email: str, property_name: str) -> dict:
    """
    Column values every self-service PM registration starts with.
    """
    return {
        "name": name,
        "email": email,
        "property_name": property_name,
        "role": UserRole.pm.value,
        "approved": False,
        "subscribed": False,
        "subscription_status": SubscriptionStatus.pending.value,
    }
