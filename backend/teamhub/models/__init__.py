from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict


class BaseDBModel(BaseModel):
    """A stored row. Views built from rows are immutable."""

    id: UUID
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, frozen=True)
