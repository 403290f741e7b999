# dependencies/services.py

"""Collaborator and service factories for route dependencies."""

from fastapi import Depends, HTTPException
from supabase import Client

from core.notifications import MailgunMailer
from core.retry import RetryPolicy
from core.stripe_helpers import StripeGateway
from core.supabase_client import get_supabase_client
from services.account_provisioning import AccountProvisioner
from services.email_verification import EmailVerificationService
from services.invitations import InvitationService
from services.stripe_webhook_service import StripeWebhookService


# -----------------------------------------------------
# External collaborators
# -----------------------------------------------------
def get_supabase() -> Client:
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


def get_payment_gateway() -> StripeGateway:
    return StripeGateway.from_settings()


def get_mailer() -> MailgunMailer:
    return MailgunMailer.from_settings()


def get_retry_policy() -> RetryPolicy:
    return RetryPolicy.from_settings()


# -----------------------------------------------------
# Services
# -----------------------------------------------------
def get_account_provisioner(
    client: Client = Depends(get_supabase),
    payments: StripeGateway = Depends(get_payment_gateway),
    retry_policy: RetryPolicy = Depends(get_retry_policy),
) -> AccountProvisioner:
    return AccountProvisioner(client, payments, retry_policy)


def get_payments_only_provisioner(
    payments: StripeGateway = Depends(get_payment_gateway),
) -> AccountProvisioner:
    """Stripe-only routes never touch Supabase."""
    return AccountProvisioner(None, payments, RetryPolicy(max_attempts=1, delay_seconds=0))


def get_verification_service(
    client: Client = Depends(get_supabase),
    mailer: MailgunMailer = Depends(get_mailer),
) -> EmailVerificationService:
    return EmailVerificationService(client, mailer)


def get_mail_only_verification_service(
    mailer: MailgunMailer = Depends(get_mailer),
) -> EmailVerificationService:
    """Sending an already-issued token needs no Supabase access."""
    return EmailVerificationService(None, mailer)


def get_webhook_service(
    client: Client = Depends(get_supabase),
    payments: StripeGateway = Depends(get_payment_gateway),
    verification: EmailVerificationService = Depends(get_verification_service),
) -> StripeWebhookService:
    return StripeWebhookService(client, payments, verification)


def get_invitation_service(
    client: Client = Depends(get_supabase),
) -> InvitationService:
    return InvitationService(client)
