# -------------------------
# Enums
# -------------------------
from .enums import (
    UserRole,
    SubscriptionStatus,
    Plan,
)

# -------------------------
# Profile Store
# -------------------------
from .user import UserProfile, new_pm_profile_fields

# -------------------------
# Provisioning / Billing
# -------------------------
from .provisioning import (
    CreateUserRequest,
    RegisterRequest,
    CreateCustomerRequest,
    CreateCheckoutRequest,
    CreateSubscriptionRequest,
    ProvisionedAccount,
    CheckoutSession,
    RegistrationResult,
)

# -------------------------
# Invitations
# -------------------------
from .invite import InviteRequest, InvitedUser

# -------------------------
# Auth Models
# -------------------------
from .auth import (
    LoginRequest,
    RefreshRequest,
    TokenResponse,
    SendVerificationEmailRequest,
)
