# core/auth_errors.py

from core.errors import extract_supabase_error, supabase_error_code


EMAIL_NOT_CONFIRMED = "Please verify your email before signing in."
INVALID_CREDENTIALS = "Invalid email or password"
RATE_LIMITED = "Too many attempts. Please wait a moment and try again."
GENERIC_FAILURE = "Sign in failed. Please try again."


def friendly_auth_error(error: Exception) -> str:
    """
    Map Supabase Auth error codes / messages to text shown in the console.
    """
    code = (supabase_error_code(error) or "").lower()
    status = getattr(error, "status", None)
    detail = extract_supabase_error(error).lower()

    if code == "email_not_confirmed" or "email not confirmed" in detail:
        return EMAIL_NOT_CONFIRMED

    if code in ("invalid_credentials", "invalid_grant") or "invalid login credentials" in detail:
        return INVALID_CREDENTIALS

    if (
        code in ("over_request_rate_limit", "over_email_send_rate_limit")
        or status == 429
        or "rate limit" in detail
    ):
        return RATE_LIMITED

    return GENERIC_FAILURE
