# models/enums.py

from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class UserRole(BaseStrEnum):
    """Roles stored on the profile row and in Supabase user metadata."""

    pm = "pm"
    tenant = "tenant"
    super_admin = "super_admin"


# -----------------------------------------------------
# SUBSCRIPTION STATUS
# -----------------------------------------------------
class SubscriptionStatus(BaseStrEnum):
    """Profile subscription state. `pending` until Stripe confirms payment."""

    pending = "pending"
    active = "active"
    cancelled = "cancelled"
    past_due = "past_due"


# -----------------------------------------------------
# PLAN
# -----------------------------------------------------
class Plan(BaseStrEnum):
    monthly = "monthly"
    yearly = "yearly"
