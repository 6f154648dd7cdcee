"""Pydantic v2 request/response schemas for blackout date endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from campreserv.schemas.common import OptionalFlag

_CATEGORY_PATTERN = "^(maintenance|seasonal|event|emergency|other)$"


class BlackoutCreate(BaseModel):
    """Schema for creating a blackout. No site and no site classes means park-wide."""

    site_id: uuid.UUID | None = None
    site_class_ids: list[uuid.UUID] = Field(default_factory=list)
    start_date: date
    end_date: date
    reason: str | None = None
    category: str = Field("other", pattern=_CATEGORY_PATTERN)
    is_active: bool = True


class BlackoutUpdate(BaseModel):
    site_id: uuid.UUID | None = None
    site_class_ids: list[uuid.UUID] | None = None
    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = None
    category: str | None = Field(None, pattern=_CATEGORY_PATTERN)
    is_active: OptionalFlag = None


class BlackoutResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    site_id: uuid.UUID | None = None
    site_class_ids: list[uuid.UUID]
    start_date: date
    end_date: date
    reason: str | None = None
    category: str
    is_active: bool
    created_at: datetime
    updated_at: datetime
    # Derived from today's date
    status: str
    is_park_wide: bool

    model_config = ConfigDict(from_attributes=True)


class BlackoutListResponse(BaseModel):
    items: list[BlackoutResponse]
    total: int
