from typing import Optional
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core import profile_store
from core.config import settings
from core.errors import extract_supabase_error
from core.logging_config import logger
from dependencies.services import get_supabase
from models.enums import UserRole


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Current User Model
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: str
    role: Optional[str] = None
    name: Optional[str] = None
    property_name: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ============================================================
# AUTH DECODING (Supabase: validates JWT + reads metadata)
# ============================================================
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    client: Client = Depends(get_supabase),
) -> CurrentUser:

    if not credentials or not credentials.credentials:
        raise _unauthorized("Missing authorization header")

    token = credentials.credentials

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception:
        raise _unauthorized("Invalid or expired token")

    if not auth_resp or not auth_resp.user or not auth_resp.user.email:
        raise _unauthorized("Invalid or expired token")

    auth_user = auth_resp.user
    metadata = auth_user.user_metadata or {}

    return CurrentUser(
        id=auth_user.id,
        email=auth_user.email,
        role=metadata.get("role"),
        name=metadata.get("name"),
        property_name=metadata.get("property_name"),
    )


# ============================================================
# SERVICE ROLE (function-to-function calls)
# ============================================================
def require_service_role(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> None:
    """
    Internal endpoints are called with the Supabase service-role key as
    the bearer token, the same credential the webhook holds.
    """
    expected = settings.SUPABASE_SERVICE_ROLE_KEY
    if not expected:
        raise HTTPException(500, "Server configuration error")

    if not credentials or not secrets.compare_digest(credentials.credentials, expected):
        raise _unauthorized("Service role credentials required")


# ============================================================
# RBAC: REQUIRE SUPER ADMIN
# Role comes from the profile row, which only the service role
# writes. user_metadata is editable by its own user.
# ============================================================
def require_super_admin(
    current_user: CurrentUser = Depends(get_current_user),
    client: Client = Depends(get_supabase),
) -> CurrentUser:
    try:
        profile = profile_store.find_by_id(client, current_user.id)
    except Exception as e:
        logger.error(f"Role lookup for {current_user.id} failed: {extract_supabase_error(e)}")
        raise HTTPException(500, "Could not verify permissions")

    role = (profile or {}).get("role")
    if role != UserRole.super_admin.value:
        logger.warning(f"Denied admin action for {current_user.email} (role={role!r})")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin privileges required for this action.",
        )

    return current_user.model_copy(update={"role": role})
