"""Pydantic v2 request/response schemas for promotion endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from campreserv.rules.normalizer import ValueKind, format_display
from campreserv.schemas.common import OptionalFlag

_PROMO_TYPE_PATTERN = "^(percentage|flat)$"


class PromotionCreate(BaseModel):
    """Schema for creating a promotion. ``value`` is a percent (0-100) or cents."""

    code: str = Field(..., min_length=1, max_length=50)
    type: str = Field("percentage", pattern=_PROMO_TYPE_PATTERN)
    value: Decimal = Field(..., gt=0)
    valid_from: date | None = None
    valid_to: date | None = None
    usage_limit: int | None = Field(None, ge=1)
    description: str | None = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return value.strip().upper()


class PromotionUpdate(BaseModel):
    code: str | None = Field(None, min_length=1, max_length=50)
    type: str | None = Field(None, pattern=_PROMO_TYPE_PATTERN)
    value: Decimal | None = Field(None, gt=0)
    valid_from: date | None = None
    valid_to: date | None = None
    usage_limit: int | None = Field(None, ge=1)
    description: str | None = None
    is_active: OptionalFlag = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return value.strip().upper() if value is not None else None


class PromotionResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    code: str
    type: str
    value: Decimal
    valid_from: date | None = None
    valid_to: date | None = None
    usage_limit: int | None = None
    usage_count: int
    description: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_value(self) -> str | None:
        kind = ValueKind.PROMOTION_PERCENTAGE if self.type == "percentage" else ValueKind.CURRENCY
        return format_display(kind, self.value)


class PromotionListResponse(BaseModel):
    items: list[PromotionResponse]
    total: int
