from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from teamhub.api.dependencies import (
    get_current_user_email,
    get_current_user_id,
    get_invitation_service,
    get_team_service,
)
from teamhub.errors import ValidationError
from teamhub.models.invitation import InvitationCreate, InvitationView
from teamhub.models.membership import MemberAdd, Membership, MemberRoleUpdate
from teamhub.models.subscription import SubscriptionChange, TierInfo
from teamhub.models.team import Team, TeamCreate, TeamUpdate, TeamView
from teamhub.services.invitation_service import InvitationService
from teamhub.services.team_service import TeamService

router = APIRouter()


@router.get("/subscription-tiers", response_model=List[TierInfo])
async def list_subscription_tiers():
    """List the available subscription tiers, cheapest first."""
    return TeamService.list_subscription_tiers()


@router.post("", response_model=TeamView)
async def create_team(
    payload: TeamCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.create_team(payload, current_user_id)


@router.get("", response_model=List[Team])
async def list_teams(
    include_personal: bool = False,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    """List the teams the current user belongs to."""
    return await team_service.list_user_teams(current_user_id, include_personal)


@router.post("/personal", response_model=TeamView)
async def ensure_personal_team(
    current_user_id: UUID = Depends(get_current_user_id),
    current_user_email: Optional[str] = Depends(get_current_user_email),
    team_service: TeamService = Depends(get_team_service),
):
    """Get the current user's personal team, creating it if needed."""
    if not current_user_email:
        raise ValidationError("A personal team requires an email address")
    return await team_service.ensure_personal_team(current_user_id, current_user_email)


@router.get("/by-slug/{slug}", response_model=TeamView)
async def get_team_by_slug(
    slug: str,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.get_team_by_slug(slug, current_user_id)


@router.get("/{team_id}", response_model=TeamView)
async def get_team(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.get_team(team_id, current_user_id)


@router.patch("/{team_id}", response_model=TeamView)
async def update_team(
    team_id: UUID,
    patch: TeamUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.update_team(team_id, patch, current_user_id)


@router.delete("/{team_id}")
async def delete_team(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    await team_service.delete_team(team_id, current_user_id)
    return {"message": "Team deleted"}


@router.put("/{team_id}/subscription", response_model=TeamView)
async def change_subscription(
    team_id: UUID,
    change: SubscriptionChange,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.change_subscription(
        team_id, change.subscription_tier, change.subscription_ref, current_user_id
    )


@router.get("/{team_id}/members", response_model=List[Membership])
async def list_members(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.list_members(team_id, current_user_id)


@router.post("/{team_id}/members", response_model=Membership)
async def add_member(
    team_id: UUID,
    payload: MemberAdd,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.add_member(
        team_id, payload.user_id, payload.role, current_user_id
    )


@router.patch("/{team_id}/members/{user_id}", response_model=Membership)
async def change_member_role(
    team_id: UUID,
    user_id: UUID,
    payload: MemberRoleUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    return await team_service.change_member_role(
        team_id, user_id, payload.role, current_user_id
    )


@router.delete("/{team_id}/members/{user_id}")
async def remove_member(
    team_id: UUID,
    user_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    team_service: TeamService = Depends(get_team_service),
):
    await team_service.remove_member(team_id, user_id, current_user_id)
    return {"message": "Member removed"}


@router.post("/{team_id}/invitations", response_model=InvitationView)
async def invite_to_team(
    team_id: UUID,
    payload: InvitationCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    invitation_service: InvitationService = Depends(get_invitation_service),
):
    """Invite an email address; the response carries the link to send."""
    return await invitation_service.invite(team_id, payload, current_user_id)


@router.get("/{team_id}/invitations", response_model=List[InvitationView])
async def list_invitations(
    team_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    invitation_service: InvitationService = Depends(get_invitation_service),
):
    return await invitation_service.list_invitations(team_id, current_user_id)


@router.delete("/{team_id}/invitations/{invitation_id}")
async def delete_invitation(
    team_id: UUID,
    invitation_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    invitation_service: InvitationService = Depends(get_invitation_service),
):
    await invitation_service.delete_invitation(team_id, invitation_id, current_user_id)
    return {"message": "Invitation deleted"}
