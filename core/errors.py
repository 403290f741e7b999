# core/errors.py

from typing import Optional


# ============================================================
# Domain error taxonomy
# ============================================================

class AppError(Exception):
    """
    Base class for errors surfaced to API callers.
    main.create_app renders these as {"success": false, "error": ...}.
    """

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class ValidationError(AppError):
    """Malformed input, raised before any external call."""
    status_code = 400


class DuplicateEmailError(AppError):
    status_code = 400

    def __init__(self, email: str):
        super().__init__(
            f"User with email {email} already exists. Please use a different email."
        )
        self.email = email


class AuthenticationError(AppError):
    status_code = 401


class InvalidTokenError(AppError):
    status_code = 400

    def __init__(self, message: str = "Invalid or expired verification token. Please request a new verification email."):
        super().__init__(message)


class WebhookSignatureError(AppError):
    status_code = 400


class WebhookPayloadError(AppError):
    status_code = 400


class UpstreamError(AppError):
    """
    A call to Supabase, Stripe or Mailgun failed.
    `step` names the workflow step that was running.
    """

    def __init__(self, step: str, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.step = step

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["step"] = self.step
        return body


# ============================================================
# Supabase error inspection
# ============================================================

def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / PostgREST errors carry .message
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    return str(error) or "Unknown Supabase error"


def supabase_error_code(error: Exception) -> Optional[str]:
    code = getattr(error, "code", None)
    return str(code) if code is not None else None


def is_unique_violation(error: Exception) -> bool:
    """Postgres 23505 / duplicate key."""
    if supabase_error_code(error) == "23505":
        return True
    detail = extract_supabase_error(error).lower()
    return "duplicate" in detail or "unique" in detail


def is_already_registered(error: Exception) -> bool:
    """GoTrue rejection for an email that already has an auth account."""
    if supabase_error_code(error) in ("user_already_exists", "email_exists"):
        return True
    detail = extract_supabase_error(error).lower()
    return "already registered" in detail or "already been registered" in detail
