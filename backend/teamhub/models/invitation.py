from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from teamhub.models import BaseDBModel
from teamhub.models.role import TeamRole
from teamhub.models.team import TeamView


class InvitationCreate(BaseModel):
    email: EmailStr
    role: str = Field(default=TeamRole.MEMBER.value, min_length=1)


class Invitation(BaseDBModel):
    team_id: UUID
    email: str
    role: TeamRole
    token: str
    created_by: UUID
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return now < self.expires_at


class InvitationView(Invitation):
    invite_link: Optional[str] = None


class InvitationDetails(BaseModel):
    id: UUID
    team_id: UUID
    email: str
    role: TeamRole
    token: str
    expires_at: datetime
    team_name: str


class AcceptedInvitation(BaseModel):
    team_id: UUID
    team: TeamView
