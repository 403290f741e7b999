# routers/verification.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from dependencies.auth import require_service_role
from dependencies.services import get_mail_only_verification_service, get_verification_service
from models.auth import SendVerificationEmailRequest
from services.email_verification import EmailVerificationService


router = APIRouter(
    tags=["Verification"],
)


# -----------------------------------------------------
# GET /verify-email?token=...
# Target of the link in the activation email
# -----------------------------------------------------
@router.get("/verify-email", summary="Public: Verify email with token")
def verify_email(
    token: Optional[str] = Query(None),
    service: EmailVerificationService = Depends(get_verification_service),
):
    return service.verify(token)


# -----------------------------------------------------
# POST /send-verification-email
# Internal: service-role bearer required
# -----------------------------------------------------
@router.post(
    "/send-verification-email",
    summary="Internal: Send activation email",
    dependencies=[Depends(require_service_role)],
)
def send_verification_email(
    payload: SendVerificationEmailRequest,
    service: EmailVerificationService = Depends(get_mail_only_verification_service),
):
    service.send(payload.email, payload.name, payload.token, subject=payload.subject)
    return {"success": True, "message": "Verification email sent successfully"}
