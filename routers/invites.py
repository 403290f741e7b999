# routers/invites.py

from fastapi import APIRouter, Depends

from dependencies.auth import CurrentUser, require_super_admin
from dependencies.services import get_invitation_service
from models.invite import InviteRequest
from services.invitations import InvitationService


router = APIRouter(
    tags=["Invitations"],
)


@router.post("/invite-pm", summary="Super admin: Invite a property manager")
def invite_pm(
    payload: InviteRequest,
    current_user: CurrentUser = Depends(require_super_admin),
    service: InvitationService = Depends(get_invitation_service),
):
    invited = service.invite(
        payload.email,
        payload.name,
        payload.role,
        invited_by=current_user.email,
    )
    return {"success": True, "data": invited.model_dump()}
