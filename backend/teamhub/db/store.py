from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

Row = Dict[str, Any]


class StoreError(Exception):
    """Raised by store adapters; never carries business meaning by itself."""

    def __init__(self, message: str = "", constraint: Optional[str] = None):
        super().__init__(message)
        self.constraint = constraint


class UniqueViolation(StoreError):
    pass


class OwnerGuardViolation(StoreError):
    pass


class MemberLimitViolation(StoreError):
    pass


class PersonalTeamViolation(StoreError):
    pass


class InvitationGone(StoreError):
    pass


class StoreUnavailable(StoreError):
    pass


class MembershipStore(ABC):
    """Persistence for the teams, team_members and team_invitations relations.

    Implementations enforce only storage constraints: unique indexes, cascade
    deletes, and the guards installed in the database (at least one owner per
    team, member capacity, personal team immutability). Multi-row operations
    are single transactions. Rows are plain dicts keyed by column name.
    """

    @abstractmethod
    async def create_team_with_owner(self, team: Row, owner_id: UUID) -> Row:
        """Insert a team and its founding owner membership atomically."""
        pass

    @abstractmethod
    async def get_team(self, team_id: UUID) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_team_by_slug(self, slug: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_personal_team(self, user_id: UUID) -> Optional[Row]:
        pass

    @abstractmethod
    async def list_teams_for_user(self, user_id: UUID) -> List[Row]:
        pass

    @abstractmethod
    async def update_team(self, team_id: UUID, changes: Row) -> Optional[Row]:
        pass

    @abstractmethod
    async def delete_team(self, team_id: UUID) -> bool:
        """Delete memberships, invitations, then the team, as one unit."""
        pass

    @abstractmethod
    async def get_membership(self, team_id: UUID, user_id: UUID) -> Optional[Row]:
        pass

    @abstractmethod
    async def list_memberships(
        self, team_id: UUID, role: Optional[str] = None
    ) -> List[Row]:
        pass

    @abstractmethod
    async def insert_membership(self, team_id: UUID, user_id: UUID, role: str) -> Row:
        pass

    @abstractmethod
    async def update_membership_role(
        self, team_id: UUID, user_id: UUID, role: str
    ) -> Optional[Row]:
        pass

    @abstractmethod
    async def delete_membership(self, team_id: UUID, user_id: UUID) -> bool:
        pass

    @abstractmethod
    async def insert_invitation(self, invitation: Row) -> Row:
        pass

    @abstractmethod
    async def get_invitation(self, invitation_id: UUID) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_invitation_by_token(self, token: str) -> Optional[Row]:
        pass

    @abstractmethod
    async def get_invitation_for_email(
        self, team_id: UUID, email: str
    ) -> Optional[Row]:
        pass

    @abstractmethod
    async def list_invitations(self, team_id: UUID) -> List[Row]:
        pass

    @abstractmethod
    async def delete_invitation(self, invitation_id: UUID) -> bool:
        pass

    @abstractmethod
    async def consume_invitation(self, invitation_id: UUID, user_id: UUID) -> Row:
        """Turn a pending invitation into a membership and delete the invitation.

        Raises `UniqueViolation` if the user already belongs to the team and
        `InvitationGone` if the invitation no longer exists.
        """
        pass

    @abstractmethod
    async def delete_expired_invitations(self, now: datetime) -> int:
        pass
