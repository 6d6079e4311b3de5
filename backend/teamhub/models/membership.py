from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from teamhub.models import BaseDBModel
from teamhub.models.role import TeamRole


class Membership(BaseDBModel):
    team_id: UUID
    user_id: UUID
    role: TeamRole
    updated_at: Optional[datetime] = None


# Roles stay plain strings on the way in; the services reject unknown ones.
class MemberAdd(BaseModel):
    user_id: UUID
    role: str = Field(default=TeamRole.MEMBER.value, min_length=1)


class MemberRoleUpdate(BaseModel):
    role: str = Field(..., min_length=1)
