# services/invitations.py

from supabase import Client

from core.errors import (
    DuplicateEmailError,
    UpstreamError,
    ValidationError,
    extract_supabase_error,
    is_already_registered,
)
from core.logging_config import logger
from core.validators import require_fields, validate_email
from models.enums import UserRole
from models.invite import InvitedUser


class InvitationService:
    """
    Creates the Supabase Auth side of a PM invitation: an unconfirmed
    account carrying name + role metadata. No profile row is written here.
    """

    def __init__(self, client: Client):
        self.client = client

    def invite(self, email: str, name: str, role: str, invited_by: str = None) -> InvitedUser:
        require_fields({"email": email, "name": name, "role": role}, ("email", "name", "role"))
        email = validate_email(email)
        name = name.strip()

        if role not in UserRole.list():
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(UserRole.list())}")

        try:
            response = self.client.auth.admin.create_user(
                {
                    "email": email,
                    "email_confirm": False,
                    "user_metadata": {"name": name, "role": role},
                }
            )
        except Exception as e:
            if is_already_registered(e):
                raise DuplicateEmailError(email)
            detail = extract_supabase_error(e)
            logger.error(f"Invite for {email} failed: {detail}")
            raise UpstreamError(
                "invite",
                f"Failed to create user: {detail}",
                status_code=getattr(e, "status", None) or 500,
            )

        user = response.user
        metadata = user.user_metadata or {}

        logger.info(f"Invited {email} as {role} (by {invited_by or 'unknown'})")
        return InvitedUser(
            id=user.id,
            email=user.email,
            name=metadata.get("name"),
            role=metadata.get("role"),
        )
