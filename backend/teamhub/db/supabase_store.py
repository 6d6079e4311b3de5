import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Type
from uuid import UUID

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from teamhub.db.store import (
    InvitationGone,
    MemberLimitViolation,
    MembershipStore,
    OwnerGuardViolation,
    PersonalTeamViolation,
    Row,
    StoreError,
    StoreUnavailable,
    UniqueViolation,
)

logger = logging.getLogger(__name__)

TEAMS = "teams"
MEMBERS = "team_members"
INVITATIONS = "team_invitations"

# SQLSTATEs raised by the triggers and functions in supabase/migrations.
_ERROR_CODES: Dict[str, Type[StoreError]] = {
    "23505": UniqueViolation,
    "TM001": OwnerGuardViolation,
    "TM002": MemberLimitViolation,
    "TM003": PersonalTeamViolation,
    "TM004": InvitationGone,
}

_CONSTRAINT_RE = re.compile(r'constraint "([^"]+)"')


def translate_api_error(error: APIError) -> StoreError:
    error_class = _ERROR_CODES.get(error.code or "", StoreUnavailable)
    message = error.message or ""
    constraint = None
    if error_class is UniqueViolation:
        match = _CONSTRAINT_RE.search(message)
        constraint = match.group(1) if match else None
    return error_class(message, constraint=constraint)


def _serialize(row: Row) -> Dict[str, Any]:
    payload = {}
    for key, value in row.items():
        if isinstance(value, UUID):
            value = str(value)
        elif isinstance(value, datetime):
            value = value.isoformat()
        payload[key] = value
    return payload


def _first(data: Any) -> Optional[Row]:
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


class SupabaseMembershipStore(MembershipStore):
    def __init__(self, client: AsyncClient):
        self.client = client

    async def _execute(self, query) -> Any:
        try:
            return (await query.execute()).data
        except APIError as e:
            raise translate_api_error(e) from e
        except httpx.HTTPError as e:
            logger.warning(f"Supabase request failed: {e!r}")
            raise StoreUnavailable(str(e)) from e

    async def create_team_with_owner(self, team: Row, owner_id: UUID) -> Row:
        data = await self._execute(
            self.client.rpc(
                "create_team_with_owner",
                {"p_team": _serialize(team), "p_owner_id": str(owner_id)},
            )
        )
        return _first(data)

    async def get_team(self, team_id: UUID) -> Optional[Row]:
        data = await self._execute(
            self.client.table(TEAMS).select("*").eq("id", str(team_id)).limit(1)
        )
        return _first(data)

    async def get_team_by_slug(self, slug: str) -> Optional[Row]:
        data = await self._execute(
            self.client.table(TEAMS).select("*").eq("slug", slug).limit(1)
        )
        return _first(data)

    async def get_personal_team(self, user_id: UUID) -> Optional[Row]:
        data = await self._execute(
            self.client.table(TEAMS)
            .select("*")
            .eq("is_personal", True)
            .eq("personal_owner_id", str(user_id))
            .limit(1)
        )
        return _first(data)

    async def list_teams_for_user(self, user_id: UUID) -> List[Row]:
        teams = await self._execute(
            self.client.table(TEAMS)
            .select("*, team_members!inner(user_id)")
            .eq("team_members.user_id", str(user_id))
            .order("created_at", desc=False)
        )
        for team in teams:
            team.pop("team_members", None)
        return teams

    async def update_team(self, team_id: UUID, changes: Row) -> Optional[Row]:
        data = await self._execute(
            self.client.table(TEAMS)
            .update(_serialize(changes), returning="representation")
            .eq("id", str(team_id))
        )
        return _first(data)

    async def delete_team(self, team_id: UUID) -> bool:
        deleted = await self._execute(
            self.client.rpc("delete_team_cascade", {"p_team_id": str(team_id)})
        )
        return bool(deleted)

    async def get_membership(self, team_id: UUID, user_id: UUID) -> Optional[Row]:
        data = await self._execute(
            self.client.table(MEMBERS)
            .select("*")
            .match({"team_id": str(team_id), "user_id": str(user_id)})
            .limit(1)
        )
        return _first(data)

    async def list_memberships(
        self, team_id: UUID, role: Optional[str] = None
    ) -> List[Row]:
        query = self.client.table(MEMBERS).select("*").eq("team_id", str(team_id))
        if role:
            query = query.eq("role", role)
        return await self._execute(query.order("created_at", desc=False))

    async def insert_membership(self, team_id: UUID, user_id: UUID, role: str) -> Row:
        data = await self._execute(
            self.client.table(MEMBERS).insert(
                {"team_id": str(team_id), "user_id": str(user_id), "role": role},
                returning="representation",
            )
        )
        return _first(data)

    async def update_membership_role(
        self, team_id: UUID, user_id: UUID, role: str
    ) -> Optional[Row]:
        data = await self._execute(
            self.client.table(MEMBERS)
            .update({"role": role}, returning="representation")
            .match({"team_id": str(team_id), "user_id": str(user_id)})
        )
        return _first(data)

    async def delete_membership(self, team_id: UUID, user_id: UUID) -> bool:
        deleted = await self._execute(
            self.client.table(MEMBERS)
            .delete(returning="representation")
            .match({"team_id": str(team_id), "user_id": str(user_id)})
        )
        return bool(deleted)

    async def insert_invitation(self, invitation: Row) -> Row:
        data = await self._execute(
            self.client.table(INVITATIONS).insert(
                _serialize(invitation), returning="representation"
            )
        )
        return _first(data)

    async def get_invitation(self, invitation_id: UUID) -> Optional[Row]:
        data = await self._execute(
            self.client.table(INVITATIONS)
            .select("*")
            .eq("id", str(invitation_id))
            .limit(1)
        )
        return _first(data)

    async def get_invitation_by_token(self, token: str) -> Optional[Row]:
        data = await self._execute(
            self.client.table(INVITATIONS).select("*").eq("token", token).limit(1)
        )
        return _first(data)

    async def get_invitation_for_email(
        self, team_id: UUID, email: str
    ) -> Optional[Row]:
        data = await self._execute(
            self.client.table(INVITATIONS)
            .select("*")
            .match({"team_id": str(team_id), "email": email})
            .limit(1)
        )
        return _first(data)

    async def list_invitations(self, team_id: UUID) -> List[Row]:
        return await self._execute(
            self.client.table(INVITATIONS)
            .select("*")
            .eq("team_id", str(team_id))
            .order("created_at", desc=False)
        )

    async def delete_invitation(self, invitation_id: UUID) -> bool:
        deleted = await self._execute(
            self.client.table(INVITATIONS)
            .delete(returning="representation")
            .eq("id", str(invitation_id))
        )
        return bool(deleted)

    async def consume_invitation(self, invitation_id: UUID, user_id: UUID) -> Row:
        data = await self._execute(
            self.client.rpc(
                "consume_invitation",
                {"p_invitation_id": str(invitation_id), "p_user_id": str(user_id)},
            )
        )
        return _first(data)

    async def delete_expired_invitations(self, now: datetime) -> int:
        deleted = await self._execute(
            self.client.table(INVITATIONS)
            .delete(returning="representation")
            .lte("expires_at", now.isoformat())
        )
        return len(deleted or [])
