from uuid import UUID

from fastapi import APIRouter, Depends

from teamhub.api.dependencies import get_current_user_id, get_invitation_service
from teamhub.models.invitation import AcceptedInvitation, InvitationDetails
from teamhub.services.invitation_service import InvitationService

router = APIRouter()


@router.get("/{token}", response_model=InvitationDetails)
async def verify_invitation(
    token: str,
    invitation_service: InvitationService = Depends(get_invitation_service),
):
    """Check an invitation token and show which team it is for."""
    return await invitation_service.verify_token(token)


@router.post("/{token}/accept", response_model=AcceptedInvitation)
async def accept_invitation(
    token: str,
    current_user_id: UUID = Depends(get_current_user_id),
    invitation_service: InvitationService = Depends(get_invitation_service),
):
    return await invitation_service.accept_invitation(token, current_user_id)
