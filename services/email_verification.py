# services/email_verification.py

"""
Email verification tokens: issued after payment, consumed from the link
in the activation email.
"""

import secrets
from datetime import timedelta
from typing import Optional, Dict, Any

from supabase import Client

from core import profile_store
from core.config import settings
from core.email_utils import send_verification_email
from core.errors import InvalidTokenError, UpstreamError, ValidationError, extract_supabase_error
from core.logging_config import logger, token_prefix
from core.validators import require_fields, validate_email


DEFAULT_RECIPIENT_NAME = "Property Manager"


def generate_verification_token() -> str:
    return secrets.token_urlsafe(32)


class EmailVerificationService:

    def __init__(
        self,
        client: Client,
        mailer,
        ttl_hours: Optional[int] = None,
        enforce_expiry: Optional[bool] = None,
    ):
        self.client = client
        self.mailer = mailer
        self.ttl = timedelta(
            hours=ttl_hours if ttl_hours is not None else settings.VERIFICATION_TOKEN_TTL_HOURS
        )
        self.enforce_expiry = (
            settings.ENFORCE_VERIFICATION_EXPIRY if enforce_expiry is None else enforce_expiry
        )

    # -----------------------------------------------------
    # Issuing
    # -----------------------------------------------------
    def _outstanding_token(self, profile: Optional[Dict[str, Any]]) -> Optional[str]:
        """Token still valid on the profile, if any."""
        if not profile or not profile.get("verification_token"):
            return None
        expires_at = profile_store.parse_timestamp(profile.get("verification_token_expires_at"))
        if expires_at is None or expires_at <= profile_store.utc_now():
            return None
        return profile["verification_token"]

    def _persist_token(self, user_id: str, token: str) -> bool:
        expires_at = profile_store.utc_now() + self.ttl
        try:
            updated = profile_store.update_profile(
                self.client,
                user_id,
                {
                    "verification_token": token,
                    "verification_token_expires_at": expires_at.isoformat(),
                },
            )
        except Exception as e:
            logger.error(
                f"Failed to store verification token for {user_id}: {extract_supabase_error(e)}"
            )
            return False

        if not updated:
            logger.error(f"Failed to store verification token for {user_id}: no profile row")
            return False

        logger.info(f"Stored verification token {token_prefix(token)} for {user_id}")
        return True

    def start_verification(
        self,
        user_id: str,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Optional[str]:
        """
        Issue (or reuse) a token and email the activation link.

        Never raises: every failure is logged so the webhook that calls
        this can still acknowledge its event. Returns the token that was
        sent, or None when nothing was sent.
        """
        try:
            profile = profile_store.find_by_id(self.client, user_id)
        except Exception as e:
            logger.warning(f"Profile lookup for {user_id} failed: {extract_supabase_error(e)}")
            profile = None

        if profile and profile.get("email_verified"):
            logger.info(f"Profile {user_id} already verified - no verification email")
            return None

        email = email or (profile or {}).get("email")
        name = name or (profile or {}).get("name") or DEFAULT_RECIPIENT_NAME

        token = self._outstanding_token(profile)
        if token:
            logger.info(f"Re-sending outstanding verification token for {user_id}")
        else:
            token = generate_verification_token()
            if not self._persist_token(user_id, token):
                # A link to an unsaved token could never be verified
                return None

        if not email:
            logger.warning(f"No email address for {user_id} - verification email not sent")
            return None

        try:
            send_verification_email(self.mailer, email, name, token)
        except Exception as e:
            logger.error(f"Verification email to {email} failed: {e}")
            return None

        return token

    def send(self, email: str, name: str, token: str, subject: Optional[str] = None) -> None:
        require_fields(
            {"email": email, "name": name, "token": token},
            ("email", "name", "token"),
        )
        email = validate_email(email)
        send_verification_email(self.mailer, email, name, token, subject=subject)

    # -----------------------------------------------------
    # Consuming
    # -----------------------------------------------------
    def verify(self, token: Optional[str]) -> Dict[str, Any]:
        if not token or not token.strip():
            raise ValidationError("Missing verification token. Please use the link from your email.")
        token = token.strip()

        try:
            profile = profile_store.find_by_token(self.client, token)
        except Exception as e:
            logger.error(f"Verification lookup failed: {extract_supabase_error(e)}")
            raise UpstreamError(
                "verification_lookup",
                "Database error during verification. Please try again later.",
            )

        if not profile:
            logger.info(f"Unknown verification token {token_prefix(token)}")
            raise InvalidTokenError()

        user_id = profile["id"]

        if profile.get("email_verified"):
            return {
                "success": True,
                "message": "Email already verified. You can sign in now.",
                "already_verified": True,
                "user_id": user_id,
            }

        if self.enforce_expiry:
            expires_at = profile_store.parse_timestamp(profile.get("verification_token_expires_at"))
            if expires_at is not None and expires_at <= profile_store.utc_now():
                logger.info(f"Expired verification token for {user_id}")
                raise InvalidTokenError()

        try:
            updated = profile_store.consume_verification_token(self.client, user_id, token)
        except Exception as e:
            logger.error(f"Failed to mark {user_id} verified: {extract_supabase_error(e)}")
            raise UpstreamError(
                "verification_update",
                "Failed to verify email. Please try again.",
            )

        if not updated:
            # Consumed by a concurrent request
            raise InvalidTokenError()

        self._mirror_to_auth(user_id)

        logger.info(f"Email verified for {user_id}")
        return {
            "success": True,
            "message": "Email verified successfully! You can now sign in.",
            "user_id": user_id,
        }

    def _mirror_to_auth(self, user_id: str) -> None:
        """The profile flag is authoritative; the auth-side flag is best effort."""
        try:
            self.client.auth.admin.update_user_by_id(user_id, {"email_confirm": True})
        except Exception as e:
            logger.warning(f"Could not confirm auth email for {user_id}: {extract_supabase_error(e)}")
