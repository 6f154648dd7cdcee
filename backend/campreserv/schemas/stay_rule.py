"""Pydantic v2 request/response schemas for stay rule endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from campreserv.schemas.common import OptionalFlag


class StayDateRange(BaseModel):
    """Inclusive date range a stay rule restricts."""

    start: date
    end: date

    @model_validator(mode="after")
    def check_dates(self) -> "StayDateRange":
        if self.end < self.start:
            raise ValueError("end must be on or after start")
        return self


class StayRuleCreate(BaseModel):
    """Schema for creating a stay rule. Empty ``site_classes`` restricts every class."""

    name: str = Field(..., min_length=1, max_length=100)
    min_nights: int = Field(1, ge=1)
    max_nights: int = Field(28, ge=1)
    site_classes: list[uuid.UUID] = Field(default_factory=list)
    date_ranges: list[StayDateRange] = Field(default_factory=list)
    ignore_days_before: int = Field(0, ge=0)
    is_active: bool = True


class StayRuleUpdate(BaseModel):
    """Schema for partially updating a stay rule. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=100)
    min_nights: int | None = Field(None, ge=1)
    max_nights: int | None = Field(None, ge=1)
    site_classes: list[uuid.UUID] | None = None
    date_ranges: list[StayDateRange] | None = None
    ignore_days_before: int | None = Field(None, ge=0)
    is_active: OptionalFlag = None


class StayRuleResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    name: str
    min_nights: int
    max_nights: int
    site_classes: list[uuid.UUID]
    date_ranges: list[StayDateRange]
    ignore_days_before: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StayRuleListResponse(BaseModel):
    items: list[StayRuleResponse]
    total: int
