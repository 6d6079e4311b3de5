import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union
from uuid import UUID

from teamhub.db.store import (
    MemberLimitViolation,
    MembershipStore,
    OwnerGuardViolation,
    PersonalTeamViolation,
    UniqueViolation,
)
from teamhub.errors import (
    AlreadyMember,
    Forbidden,
    InvalidRole,
    LastOwnerProtected,
    MemberLimitExceeded,
    NotFound,
    PersonalTeamProtected,
    SlugTaken,
    UnknownTier,
    ValidationError,
    translate_store_errors,
)
from teamhub.models.membership import Membership
from teamhub.models.role import TeamRole
from teamhub.models.subscription import (
    SubscriptionTier,
    TierInfo,
    get_tier,
    list_tiers,
)
from teamhub.models.team import Team, TeamCreate, TeamUpdate, TeamView
from teamhub.services.authorization import Action, can

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

PERSONAL_TEAM_SIZE = 1

_REQUIRED_TEAM_COLUMNS = ("name", "metadata")

_MEMBERSHIP_ERRORS = {
    UniqueViolation: AlreadyMember,
    MemberLimitViolation: MemberLimitExceeded,
    OwnerGuardViolation: LastOwnerProtected,
    PersonalTeamViolation: PersonalTeamProtected,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def parse_role(value: Union[TeamRole, str]) -> TeamRole:
    if isinstance(value, TeamRole):
        return value
    try:
        return TeamRole(str(value).strip().lower())
    except ValueError:
        raise InvalidRole() from None


def parse_tier(value: Union[SubscriptionTier, str]) -> SubscriptionTier:
    if isinstance(value, SubscriptionTier):
        return value
    try:
        return SubscriptionTier(str(value).strip().lower())
    except ValueError:
        raise UnknownTier() from None


class TeamService:
    """Team and membership lifecycle on top of a `MembershipStore`.

    Every mutating operation reads the membership set fresh from the store
    right before it writes, and the store guards the same invariants again
    inside the write itself.
    """

    def __init__(self, store: MembershipStore, clock: Clock = utcnow):
        self.store = store
        self.clock = clock

    async def load_team(self, team_id: UUID) -> Team:
        with translate_store_errors():
            row = await self.store.get_team(team_id)
        if not row:
            raise NotFound("Team not found")
        return Team(**row)

    async def team_view(self, team: Team) -> TeamView:
        owner_ids = await self.get_owner_ids(team.id)
        return TeamView(
            **team.model_dump(), owner_id=owner_ids[0] if owner_ids else None
        )

    async def get_owner_ids(self, team_id: UUID) -> List[UUID]:
        """The team's owners from the membership table, oldest first."""
        with translate_store_errors():
            owners = await self.store.list_memberships(
                team_id, role=TeamRole.OWNER.value
            )
        return [UUID(str(owner["user_id"])) for owner in owners]

    async def get_member_role(
        self, team_id: UUID, user_id: UUID
    ) -> Optional[TeamRole]:
        with translate_store_errors():
            membership = await self.store.get_membership(team_id, user_id)
        return TeamRole(membership["role"]) if membership else None

    async def is_team_member(self, team_id: UUID, user_id: UUID) -> bool:
        return await self.get_member_role(team_id, user_id) is not None

    async def authorize(
        self, team_id: UUID, actor_id: UUID, action: Action, **kwargs
    ) -> TeamRole:
        actor_role = await self.get_member_role(team_id, actor_id)
        if not can(actor_role, action, **kwargs):
            self._deny(team_id, actor_id, action)
        return actor_role

    @staticmethod
    def _deny(team_id: UUID, actor_id: UUID, action: Action):
        logger.warning(f"Denied {action.value} on team {team_id} for user {actor_id}")
        raise Forbidden()

    async def _members(self, team_id: UUID) -> List[Membership]:
        with translate_store_errors():
            rows = await self.store.list_memberships(team_id)
        return [Membership(**row) for row in rows]

    async def create_team(self, payload: TeamCreate, actor_id: UUID) -> TeamView:
        """Create a team with the actor as its founding owner."""
        slug = payload.slug or generate_slug(payload.name)
        if not slug:
            raise ValidationError("Team name must contain a letter or a digit")

        tier = get_tier(SubscriptionTier.FREE)
        row = {
            "name": payload.name,
            "slug": slug,
            "description": payload.description,
            "logo_url": str(payload.logo_url) if payload.logo_url else None,
            "is_personal": False,
            "subscription_tier": tier.name.value,
            "max_members": tier.max_members,
            "metadata": {},
        }
        with translate_store_errors({UniqueViolation: SlugTaken}):
            team = Team(**await self.store.create_team_with_owner(row, actor_id))

        logger.info(f"Created team {team.id} ({team.slug}) owned by {actor_id}")
        return await self.team_view(team)

    async def ensure_personal_team(self, user_id: UUID, email: str) -> TeamView:
        """Return the user's personal team, creating it on first use."""
        with translate_store_errors():
            existing = await self.store.get_personal_team(user_id)
        if existing:
            return await self.team_view(Team(**existing))

        local_part = email.split("@")[0]
        row = {
            "name": f"{local_part}'s Team",
            "slug": f"{generate_slug(local_part) or 'user'}-{user_id}",
            "is_personal": True,
            "personal_owner_id": user_id,
            "subscription_tier": SubscriptionTier.FREE.value,
            "max_members": PERSONAL_TEAM_SIZE,
            "metadata": {},
        }
        try:
            with translate_store_errors({UniqueViolation: SlugTaken}):
                team = Team(**await self.store.create_team_with_owner(row, user_id))
        except SlugTaken:
            # Lost a race against a concurrent first request.
            with translate_store_errors():
                existing = await self.store.get_personal_team(user_id)
            if not existing:
                raise
            team = Team(**existing)
        else:
            logger.info(f"Created personal team {team.id} for user {user_id}")

        return await self.team_view(team)

    async def list_user_teams(
        self, user_id: UUID, include_personal: bool = False
    ) -> List[Team]:
        with translate_store_errors():
            rows = await self.store.list_teams_for_user(user_id)
        teams = [Team(**row) for row in rows]
        if include_personal:
            return teams
        return [team for team in teams if not team.is_personal]

    async def get_team(self, team_id: UUID, actor_id: UUID) -> TeamView:
        team = await self.load_team(team_id)
        await self.authorize(team.id, actor_id, Action.READ_TEAM)
        return await self.team_view(team)

    async def get_team_by_slug(self, slug: str, actor_id: UUID) -> TeamView:
        with translate_store_errors():
            row = await self.store.get_team_by_slug(slug)
        if not row:
            raise NotFound("Team not found")
        team = Team(**row)
        await self.authorize(team.id, actor_id, Action.READ_TEAM)
        return await self.team_view(team)

    async def update_team(
        self, team_id: UUID, patch: TeamUpdate, actor_id: UUID
    ) -> TeamView:
        """Apply the provided fields of `patch` to the team."""
        team = await self.load_team(team_id)
        await self.authorize(team.id, actor_id, Action.UPDATE_TEAM)

        changes = patch.model_dump(mode="json", exclude_unset=True)
        # Only the nullable columns may be cleared.
        for column in _REQUIRED_TEAM_COLUMNS:
            if column in changes and changes[column] is None:
                del changes[column]
        if not changes:
            return await self.team_view(team)

        changes["updated_at"] = self.clock()
        with translate_store_errors():
            row = await self.store.update_team(team.id, changes)
        if not row:
            raise NotFound("Team not found")

        logger.info(f"Updated team {team.id}: {sorted(changes)}")
        return await self.team_view(Team(**row))

    async def delete_team(self, team_id: UUID, actor_id: UUID) -> None:
        team = await self.load_team(team_id)
        if team.is_personal:
            raise PersonalTeamProtected("Cannot delete a personal team")
        await self.authorize(team.id, actor_id, Action.DELETE_TEAM)

        with translate_store_errors({PersonalTeamViolation: PersonalTeamProtected}):
            deleted = await self.store.delete_team(team.id)
        if not deleted:
            raise NotFound("Team not found")

        logger.info(f"Deleted team {team.id} by user {actor_id}")

    async def list_members(self, team_id: UUID, actor_id: UUID) -> List[Membership]:
        await self.authorize(team_id, actor_id, Action.LIST_MEMBERS)
        return await self._members(team_id)

    async def add_member(
        self,
        team_id: UUID,
        user_id: UUID,
        role: Union[TeamRole, str],
        actor_id: UUID,
    ) -> Membership:
        role = parse_role(role)
        team = await self.load_team(team_id)
        await self.authorize(team.id, actor_id, Action.ADD_MEMBER, target_role=role)
        if team.is_personal:
            raise PersonalTeamProtected("Personal teams cannot have other members")

        members = await self._members(team.id)
        if any(member.user_id == user_id for member in members):
            raise AlreadyMember()
        if team.max_members is not None and len(members) >= team.max_members:
            raise MemberLimitExceeded()

        with translate_store_errors(_MEMBERSHIP_ERRORS):
            row = await self.store.insert_membership(team.id, user_id, role.value)

        logger.info(f"Added user {user_id} to team {team.id} as {role.value}")
        return Membership(**row)

    async def change_member_role(
        self,
        team_id: UUID,
        user_id: UUID,
        role: Union[TeamRole, str],
        actor_id: UUID,
    ) -> Membership:
        new_role = parse_role(role)
        team = await self.load_team(team_id)
        actor_role = await self.get_member_role(team.id, actor_id)
        if actor_role is None:
            self._deny(team.id, actor_id, Action.CHANGE_ROLE)

        members = await self._members(team.id)
        target = next((m for m in members if m.user_id == user_id), None)
        if target is None:
            raise NotFound("Team member not found")

        if not can(
            actor_role,
            Action.CHANGE_ROLE,
            target.role,
            new_role=new_role,
        ):
            self._deny(team.id, actor_id, Action.CHANGE_ROLE)

        if target.role is new_role:
            return target

        if target.role is TeamRole.OWNER:
            if team.is_personal:
                raise PersonalTeamProtected("Cannot change the owner of a personal team")
            owners = [m for m in members if m.role is TeamRole.OWNER]
            if len(owners) <= 1:
                raise LastOwnerProtected()

        with translate_store_errors(_MEMBERSHIP_ERRORS):
            row = await self.store.update_membership_role(
                team.id, user_id, new_role.value
            )
        if not row:
            raise NotFound("Team member not found")

        logger.info(
            f"Changed role of user {user_id} in team {team.id} "
            f"from {target.role.value} to {new_role.value}"
        )
        return Membership(**row)

    async def remove_member(
        self, team_id: UUID, user_id: UUID, actor_id: UUID
    ) -> None:
        team = await self.load_team(team_id)
        actor_role = await self.get_member_role(team.id, actor_id)
        if actor_role is None:
            self._deny(team.id, actor_id, Action.REMOVE_MEMBER)

        members = await self._members(team.id)
        target = next((m for m in members if m.user_id == user_id), None)
        if target is None:
            raise NotFound("Team member not found")

        is_self = user_id == actor_id
        owners = [m for m in members if m.role is TeamRole.OWNER]
        sole_owner = target.role is TeamRole.OWNER and len(owners) <= 1

        if team.is_personal and target.role is TeamRole.OWNER:
            raise PersonalTeamProtected("Cannot remove the owner of a personal team")
        # Leaving as the last owner is a state conflict, not a permission issue.
        if is_self and sole_owner:
            raise LastOwnerProtected()
        if not can(
            actor_role,
            Action.REMOVE_MEMBER,
            target.role,
            is_self=is_self,
            target_is_sole_owner=sole_owner,
        ):
            self._deny(team.id, actor_id, Action.REMOVE_MEMBER)
        if sole_owner:
            raise LastOwnerProtected()

        with translate_store_errors(_MEMBERSHIP_ERRORS):
            removed = await self.store.delete_membership(team.id, user_id)
        if not removed:
            raise NotFound("Team member not found")

        logger.info(f"Removed user {user_id} from team {team.id} by user {actor_id}")

    async def change_subscription(
        self,
        team_id: UUID,
        tier: Union[SubscriptionTier, str],
        subscription_ref: Optional[str],
        actor_id: UUID,
    ) -> TeamView:
        tier_info = get_tier(parse_tier(tier))
        team = await self.load_team(team_id)
        await self.authorize(team.id, actor_id, Action.CHANGE_SUBSCRIPTION)

        max_members = PERSONAL_TEAM_SIZE if team.is_personal else tier_info.max_members
        members = await self._members(team.id)
        if max_members is not None and len(members) > max_members:
            raise MemberLimitExceeded(
                f"Team has more members than the {tier_info.name.value} tier allows"
            )

        changes = {
            "subscription_tier": tier_info.name.value,
            "subscription_ref": subscription_ref,
            "max_members": max_members,
            "updated_at": self.clock(),
        }
        with translate_store_errors({MemberLimitViolation: MemberLimitExceeded}):
            row = await self.store.update_team(team.id, changes)
        if not row:
            raise NotFound("Team not found")

        logger.info(f"Team {team.id} moved to the {tier_info.name.value} tier")
        return await self.team_view(Team(**row))

    @staticmethod
    def list_subscription_tiers() -> List[TierInfo]:
        return list_tiers()
