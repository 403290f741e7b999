from fastapi import APIRouter, HTTPException, Depends
from fastapi.security import HTTPAuthorizationCredentials
from supabase import Client

from core.auth_errors import friendly_auth_error
from core.logging_config import logger
from dependencies.auth import CurrentUser, bearer_scheme, get_current_user
from dependencies.services import get_supabase
from models.auth import LoginRequest, RefreshRequest, TokenResponse


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


def _token_response(response) -> TokenResponse:
    session = response.session
    return TokenResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=getattr(session, "expires_in", None),
    )


# ============================================================
# LOGIN (SUPABASE AUTH)
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate console user")
def login(payload: LoginRequest, client: Client = Depends(get_supabase)):

    email = payload.email.strip().lower()

    try:
        response = client.auth.sign_in_with_password(
            {"email": email, "password": payload.password}
        )
    except Exception as e:
        # Log the error type only; never the password
        logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
        raise HTTPException(status_code=401, detail=friendly_auth_error(e))

    if not response.session or not response.session.access_token:
        raise HTTPException(401, "Invalid email or password")

    return _token_response(response)


# ============================================================
# REFRESH
# ============================================================
@router.post("/refresh", response_model=TokenResponse, summary="Exchange a refresh token")
def refresh(payload: RefreshRequest, client: Client = Depends(get_supabase)):
    try:
        response = client.auth.refresh_session(payload.refresh_token)
    except Exception as e:
        logger.info(f"Refresh rejected: {type(e).__name__}")
        raise HTTPException(401, "Session expired. Please sign in again.")

    if not response or not response.session:
        raise HTTPException(401, "Session expired. Please sign in again.")

    return _token_response(response)


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", summary="Revoke the current session")
def logout(
    current_user: CurrentUser = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    client: Client = Depends(get_supabase),
):
    try:
        client.auth.admin.sign_out(credentials.credentials)
    except Exception as e:
        # The client discards its tokens either way
        logger.warning(f"Sign-out for {current_user.email} failed: {e}")

    return {"success": True}


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", response_model=CurrentUser, summary="Current authenticated user")
def read_me(current_user: CurrentUser = Depends(get_current_user)):
    return current_user
