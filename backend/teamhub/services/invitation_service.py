import logging
import secrets
from datetime import timedelta
from typing import List
from uuid import UUID

from teamhub.config import settings
from teamhub.db.store import (
    InvitationGone,
    MemberLimitViolation,
    MembershipStore,
    PersonalTeamViolation,
    UniqueViolation,
)
from teamhub.errors import (
    AlreadyInvited,
    AlreadyMember,
    MemberLimitExceeded,
    NotFound,
    PersonalTeamProtected,
    translate_store_errors,
)
from teamhub.models.invitation import (
    AcceptedInvitation,
    Invitation,
    InvitationCreate,
    InvitationDetails,
    InvitationView,
)
from teamhub.services.authorization import Action
from teamhub.services.team_service import Clock, TeamService, parse_role, utcnow

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def generate_token() -> str:
    return secrets.token_urlsafe(TOKEN_BYTES)


class InvitationService:
    """Mints, verifies and consumes team invitations.

    An invitation is live while `now < expires_at`. Dead invitations behave
    exactly like missing ones for every caller-facing lookup; their rows stay
    until `purge_expired_invitations` or a fresh invite for the same email
    removes them. Accepting or deleting an invitation deletes its row.
    """

    def __init__(
        self,
        store: MembershipStore,
        team_service: TeamService,
        clock: Clock = utcnow,
        ttl_days: int = settings.invitation_ttl_days,
        base_url: str = settings.invitation_base_url,
    ):
        self.store = store
        self.teams = team_service
        self.clock = clock
        self.ttl = timedelta(days=ttl_days)
        self.base_url = base_url.rstrip("/")

    def _view(self, invitation: Invitation) -> InvitationView:
        return InvitationView(
            **invitation.model_dump(),
            invite_link=f"{self.base_url}/{invitation.token}",
        )

    async def _live_invitation(self, token: str) -> Invitation:
        with translate_store_errors():
            row = await self.store.get_invitation_by_token(token)
        if not row:
            raise NotFound("Invitation not found or expired")
        invitation = Invitation(**row)
        if not invitation.is_live(self.clock()):
            raise NotFound("Invitation not found or expired")
        return invitation

    async def invite(
        self, team_id: UUID, payload: InvitationCreate, actor_id: UUID
    ) -> InvitationView:
        """Invite an email address to the team with the given role."""
        role = parse_role(payload.role)
        email = payload.email.lower()
        team = await self.teams.load_team(team_id)
        await self.teams.authorize(team.id, actor_id, Action.INVITE, target_role=role)
        if team.is_personal:
            raise PersonalTeamProtected("Cannot invite members to a personal team")

        now = self.clock()
        with translate_store_errors():
            existing = await self.store.get_invitation_for_email(team.id, email)
        if existing:
            previous = Invitation(**existing)
            if previous.is_live(now):
                raise AlreadyInvited()
            with translate_store_errors():
                await self.store.delete_invitation(previous.id)

        row = {
            "team_id": team.id,
            "email": email,
            "role": role.value,
            "token": generate_token(),
            "created_by": actor_id,
            "created_at": now,
            "expires_at": now + self.ttl,
        }
        with translate_store_errors({UniqueViolation: AlreadyInvited}):
            invitation = Invitation(**await self.store.insert_invitation(row))

        logger.info(
            f"User {actor_id} invited {email} to team {team.id} as {role.value}"
        )
        return self._view(invitation)

    async def list_invitations(
        self, team_id: UUID, actor_id: UUID
    ) -> List[InvitationView]:
        """Pending invitations of the team; expired ones are left out."""
        await self.teams.authorize(team_id, actor_id, Action.LIST_INVITATIONS)
        with translate_store_errors():
            rows = await self.store.list_invitations(team_id)

        now = self.clock()
        invitations = [Invitation(**row) for row in rows]
        return [self._view(i) for i in invitations if i.is_live(now)]

    async def verify_token(self, token: str) -> InvitationDetails:
        invitation = await self._live_invitation(token)
        with translate_store_errors():
            team = await self.store.get_team(invitation.team_id)
        if not team:
            raise NotFound("Invitation not found or expired")

        return InvitationDetails(
            id=invitation.id,
            team_id=invitation.team_id,
            email=invitation.email,
            role=invitation.role,
            token=invitation.token,
            expires_at=invitation.expires_at,
            team_name=team["name"],
        )

    async def accept_invitation(self, token: str, user_id: UUID) -> AcceptedInvitation:
        """Join the invitation's team and consume the invitation.

        The token alone authorizes the join; the invited address is not
        compared with the caller's.
        """
        invitation = await self._live_invitation(token)
        if await self.teams.is_team_member(invitation.team_id, user_id):
            raise AlreadyMember()

        try:
            with translate_store_errors(
                {
                    UniqueViolation: AlreadyMember,
                    InvitationGone: NotFound,
                    MemberLimitViolation: MemberLimitExceeded,
                    PersonalTeamViolation: PersonalTeamProtected,
                }
            ):
                await self.store.consume_invitation(invitation.id, user_id)
        except NotFound:
            # A concurrent accept by the same user consumed it first.
            if await self.teams.is_team_member(invitation.team_id, user_id):
                raise AlreadyMember() from None
            raise NotFound("Invitation not found or expired") from None

        logger.info(
            f"User {user_id} joined team {invitation.team_id} "
            f"as {invitation.role.value} via invitation {invitation.id}"
        )
        team = await self.teams.load_team(invitation.team_id)
        return AcceptedInvitation(
            team_id=team.id, team=await self.teams.team_view(team)
        )

    async def delete_invitation(
        self, team_id: UUID, invitation_id: UUID, actor_id: UUID
    ) -> None:
        await self.teams.authorize(team_id, actor_id, Action.DELETE_INVITATION)

        with translate_store_errors():
            row = await self.store.get_invitation(invitation_id)
        if not row or UUID(str(row["team_id"])) != team_id:
            raise NotFound("Invitation not found")

        with translate_store_errors():
            deleted = await self.store.delete_invitation(invitation_id)
        if not deleted:
            raise NotFound("Invitation not found")

        logger.info(f"Deleted invitation {invitation_id} of team {team_id}")

    async def purge_expired_invitations(self) -> int:
        """Delete the rows of every expired invitation."""
        with translate_store_errors():
            purged = await self.store.delete_expired_invitations(self.clock())
        if purged:
            logger.info(f"Purged {purged} expired invitations")
        return purged
