"""Pydantic v2 schemas for seasonal rates and their rate-group projection."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, computed_field

from campreserv.rules.normalizer import ValueKind, format_display
from campreserv.schemas.common import DateWindow, OptionalFlag

_RATE_TYPE_PATTERN = "^(nightly|weekly|monthly|seasonal)$"


class SeasonalRateCreate(BaseModel):
    """Schema for creating a seasonal rate. ``amount`` is in cents."""

    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, max_length=20)
    rate_type: str = Field("nightly", pattern=_RATE_TYPE_PATTERN)
    amount: int = Field(..., ge=0)
    min_nights: int | None = Field(None, ge=1)
    site_class_id: uuid.UUID | None = None
    windows: list[DateWindow] = Field(..., min_length=1)
    is_active: bool = True


class SeasonalRateUpdate(BaseModel):
    """Schema for partially updating a seasonal rate. ``windows`` replaces all windows."""

    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, max_length=20)
    rate_type: str | None = Field(None, pattern=_RATE_TYPE_PATTERN)
    amount: int | None = Field(None, ge=0)
    min_nights: int | None = Field(None, ge=1)
    site_class_id: uuid.UUID | None = None
    windows: list[DateWindow] | None = Field(None, min_length=1)
    is_active: OptionalFlag = None


class SeasonalRateResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    name: str
    color: str | None = None
    rate_type: str
    amount: int
    min_nights: int | None = None
    site_class_id: uuid.UUID | None = None
    windows: list[DateWindow]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_amount(self) -> str | None:
        return format_display(ValueKind.CURRENCY, self.amount)


class SeasonalRateListResponse(BaseModel):
    items: list[SeasonalRateResponse]
    total: int


class RateGroupResponse(BaseModel):
    """Calendar projection of a seasonal rate: a named, colored set of date ranges."""

    id: uuid.UUID
    name: str
    color: str | None = None
    rate_type: str
    amount: int
    display_amount: str | None = None
    date_ranges: list[DateWindow]
    is_active: bool
