from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl

from teamhub.models import BaseDBModel
from teamhub.models.subscription import SubscriptionTier

SLUG_PATTERN = r"^[a-z0-9-]+$"


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(
        default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN
    )
    description: Optional[str] = Field(default=None, max_length=500)
    logo_url: Optional[HttpUrl] = None


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    logo_url: Optional[HttpUrl] = None
    metadata: Optional[Dict[str, Any]] = None


class Team(BaseDBModel):
    name: str
    slug: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    is_personal: bool = False
    personal_owner_id: Optional[UUID] = None
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    subscription_ref: Optional[str] = None
    max_members: Optional[int] = None
    metadata: Dict[str, Any] = {}
    updated_at: Optional[datetime] = None


class TeamView(Team):
    owner_id: Optional[UUID] = None
