# routers/__init__.py

from .auth import router as auth_router
from .users import router as users_router
from .billing import router as billing_router
from .stripe_webhooks import router as stripe_webhooks_router
from .verification import router as verification_router
from .invites import router as invites_router
from .health import router as health_router

__all__ = [
    "auth_router",
    "users_router",
    "billing_router",
    "stripe_webhooks_router",
    "verification_router",
    "invites_router",
    "health_router",
]
