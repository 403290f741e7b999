# services/account_provisioning.py

"""
Self-service PM registration.

    validate -> create auth user -> ensure profile row -> Stripe customer
    -> checkout session

Each step is its own network call with its own failure domain. Only the
profile step has a compensating action (deleting the auth user it just
created). A Stripe failure leaves the auth user and profile in place so
the PM can retry payment without registering again.
"""

from typing import Optional, Dict, Any

from supabase import Client

from core import profile_store
from core.errors import (
    DuplicateEmailError,
    UpstreamError,
    extract_supabase_error,
    is_already_registered,
    is_unique_violation,
)
from core.logging_config import logger
from core.retry import RetryPolicy
from core.stripe_helpers import StripeGateway
from core.validators import require_fields, validate_email, validate_plan
from models.enums import UserRole
from models.provisioning import (
    CheckoutSession,
    CreateUserRequest,
    ProvisionedAccount,
    RegisterRequest,
    RegistrationResult,
)
from models.user import new_pm_profile_fields


class AccountProvisioner:

    def __init__(
        self,
        client: Client,
        payments: StripeGateway,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = client
        self.payments = payments
        self.retry_policy = retry_policy or RetryPolicy.from_settings()

    # =================================================================
    # Steps 1-3: auth account + profile row
    # =================================================================
    def create_account(self, request: CreateUserRequest) -> ProvisionedAccount:
        require_fields(request.model_dump(), ("email", "password", "name", "property_name"))
        email = validate_email(request.email)
        name = request.name.strip()
        property_name = request.property_name.strip()

        self._ensure_email_available(email)
        user_id = self._create_auth_user(email, request.password, name, property_name)

        try:
            profile = self._ensure_profile(user_id, name, email, property_name)
        except UpstreamError:
            self._delete_auth_user(user_id)
            raise

        self._ensure_pm_role(user_id, profile)

        logger.info(f"Provisioned PM account {user_id} ({email})")
        return ProvisionedAccount(
            user_id=user_id,
            email=email,
            name=name,
            property_name=property_name,
            role=UserRole.pm.value,
        )

    def _ensure_email_available(self, email: str) -> None:
        try:
            existing = profile_store.find_by_email(self.client, email)
        except Exception as e:
            # A failed lookup is not proof of a duplicate; auth creation
            # below still rejects registered emails.
            logger.warning(f"Duplicate email check failed for {email}: {extract_supabase_error(e)}")
            return

        if existing:
            logger.info(f"Registration rejected - {email} already has a profile")
            raise DuplicateEmailError(email)

    def _create_auth_user(self, email: str, password: str, name: str, property_name: str) -> str:
        try:
            response = self.client.auth.admin.create_user(
                {
                    "email": email,
                    "password": password,
                    "email_confirm": False,
                    "user_metadata": {
                        "name": name,
                        "property_name": property_name,
                        "role": UserRole.pm.value,
                    },
                }
            )
        except Exception as e:
            if is_already_registered(e):
                raise DuplicateEmailError(email)
            detail = extract_supabase_error(e)
            logger.error(f"[AUTH STEP] Failed to create auth user for {email}: {detail}")
            raise UpstreamError(
                "auth_creation",
                f"[AUTH STEP] Failed to create auth user: {detail}",
                status_code=400,
            )

        user = getattr(response, "user", None)
        if not user:
            raise UpstreamError("auth_creation", "User creation failed - no user data returned")

        return user.id

    def _ensure_profile(self, user_id: str, name: str, email: str, property_name: str) -> Dict[str, Any]:
        """
        A database trigger on auth signup may create a default (tenant)
        profile row for the same id at any moment. Update first, retrying
        while the row is absent; insert only once the retries run out.
        """
        fields = new_pm_profile_fields(name, email, property_name)

        try:
            for attempt in self.retry_policy.attempts():
                profile = profile_store.update_profile(self.client, user_id, fields)
                if profile:
                    logger.info(f"Profile for {user_id} updated on attempt {attempt}")
                    return profile
                if attempt < self.retry_policy.max_attempts:
                    self.retry_policy.wait()

            logger.info(
                f"No profile row for {user_id} after {self.retry_policy.max_attempts} attempts - inserting"
            )
            try:
                profile = profile_store.insert_profile(self.client, {"id": user_id, **fields})
            except Exception as e:
                if not is_unique_violation(e):
                    raise
                # The trigger's row landed between the last update and the insert
                logger.info(f"Profile for {user_id} appeared during insert - updating instead")
                profile = profile_store.update_profile(self.client, user_id, fields)

        except Exception as e:
            detail = extract_supabase_error(e)
            logger.error(f"[DATABASE STEP] Database error saving new user {user_id}: {detail}")
            raise UpstreamError(
                "database_insert",
                f"[DATABASE STEP] Database error saving new user: {detail}",
                status_code=400,
            )

        if not profile:
            raise UpstreamError(
                "database_insert",
                "[DATABASE STEP] Database error saving new user: no row returned",
                status_code=400,
            )
        return profile

    def _ensure_pm_role(self, user_id: str, profile: Dict[str, Any]) -> None:
        if profile.get("role") == UserRole.pm.value:
            return

        logger.warning(
            f"Profile {user_id} saved with role {profile.get('role')!r} - correcting to pm"
        )
        try:
            profile_store.update_profile(self.client, user_id, {"role": UserRole.pm.value})
        except Exception as e:
            logger.error(f"Role correction failed for {user_id}: {extract_supabase_error(e)}")

    def _delete_auth_user(self, user_id: str) -> None:
        """Compensating action for a failed profile step. Never raises."""
        try:
            self.client.auth.admin.delete_user(user_id)
            logger.info(f"Cleaned up auth user {user_id} after profile failure")
        except Exception as e:
            logger.error(f"Cleanup of auth user {user_id} failed: {extract_supabase_error(e)}")

    # =================================================================
    # Steps 4-5: Stripe customer + checkout
    # =================================================================
    def create_customer(self, email: str, name: str, property_name: str) -> str:
        require_fields(
            {"email": email, "name": name, "property_name": property_name},
            ("email", "name", "property_name"),
        )
        email = validate_email(email)
        return self.payments.create_customer(email, name.strip(), property_name.strip())

    def create_checkout(
        self,
        customer_id: str,
        plan: str,
        user_id: Optional[str] = None,
        email: Optional[str] = None,
        name: Optional[str] = None,
    ) -> CheckoutSession:
        require_fields({"customer_id": customer_id, "plan": plan}, ("customer_id", "plan"))
        validate_plan(plan)
        if email:
            email = validate_email(email)

        session = self.payments.create_checkout_session(
            customer_id, plan, user_id=user_id, email=email, name=name
        )
        return CheckoutSession(url=session.get("url"), session_id=session["session_id"])

    # =================================================================
    # Full flow
    # =================================================================
    def register(self, request: RegisterRequest) -> RegistrationResult:
        # Reject a bad plan before anything is created
        require_fields(request.model_dump(), ("email", "password", "name", "property_name", "plan"))
        validate_plan(request.plan)

        account = self.create_account(request)

        # No rollback past this point: the PM can retry payment
        # without registering again.
        customer_id = self.create_customer(account.email, account.name, account.property_name)
        session = self.create_checkout(
            customer_id,
            request.plan,
            user_id=account.user_id,
            email=account.email,
            name=account.name,
        )

        return RegistrationResult(
            user_id=account.user_id,
            customer_id=customer_id,
            url=session.url,
            session_id=session.session_id,
        )
