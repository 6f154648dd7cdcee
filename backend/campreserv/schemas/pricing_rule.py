"""Pydantic v2 request/response schemas for pricing rules and demand bands."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from campreserv.rules.normalizer import ValueKind, format_display
from campreserv.schemas.common import OptionalFlag

_RULE_TYPE_PATTERN = "^(season|weekend|holiday|event|demand)$"
_STACK_MODE_PATTERN = "^(additive|max|override)$"
_ADJUSTMENT_TYPE_PATTERN = "^(percent|flat)$"


def _display_adjustment(adjustment_type: str, value: Decimal | None) -> str | None:
    kind = ValueKind.PERCENT_ADJUSTMENT if adjustment_type == "percent" else ValueKind.CURRENCY
    return format_display(kind, value)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PricingRuleCreate(BaseModel):
    """Schema for creating a pricing rule, in canonical units.

    ``adjustment_value`` is a signed fraction for percent rules (``-0.10`` is
    10% off) and signed cents for flat rules. Caps are cents.
    """

    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field("season", pattern=_RULE_TYPE_PATTERN)
    priority: int = Field(10, ge=0, le=999)
    stack_mode: str = Field("additive", pattern=_STACK_MODE_PATTERN)
    adjustment_type: str = Field("percent", pattern=_ADJUSTMENT_TYPE_PATTERN)
    adjustment_value: Decimal | None = None
    site_class_id: uuid.UUID | None = None
    dow_mask: list[int] | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_nights: int | None = Field(None, ge=1)
    min_rate_cap: int | None = Field(None, ge=0)
    max_rate_cap: int | None = Field(None, ge=0)
    demand_band_id: uuid.UUID | None = None
    active: bool = True


class PricingRuleUpdate(BaseModel):
    """Schema for partially updating a pricing rule. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=100)
    type: str | None = Field(None, pattern=_RULE_TYPE_PATTERN)
    priority: int | None = Field(None, ge=0, le=999)
    stack_mode: str | None = Field(None, pattern=_STACK_MODE_PATTERN)
    adjustment_type: str | None = Field(None, pattern=_ADJUSTMENT_TYPE_PATTERN)
    adjustment_value: Decimal | None = None
    site_class_id: uuid.UUID | None = None
    dow_mask: list[int] | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_nights: int | None = Field(None, ge=1)
    min_rate_cap: int | None = Field(None, ge=0)
    max_rate_cap: int | None = Field(None, ge=0)
    demand_band_id: uuid.UUID | None = None
    active: OptionalFlag = None


class DemandBandCreate(BaseModel):
    """Schema for creating a demand band."""

    name: str = Field(..., min_length=1, max_length=100)
    threshold_pct: int = Field(..., ge=0, le=100)
    adjustment_type: str = Field("percent", pattern=_ADJUSTMENT_TYPE_PATTERN)
    adjustment_value: Decimal
    active: bool = True


class DemandBandUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    threshold_pct: int | None = Field(None, ge=0, le=100)
    adjustment_type: str | None = Field(None, pattern=_ADJUSTMENT_TYPE_PATTERN)
    adjustment_value: Decimal | None = None
    active: OptionalFlag = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PricingRuleResponse(BaseModel):
    """Pricing rule returned from the API."""

    id: uuid.UUID
    campground_id: uuid.UUID
    name: str
    type: str
    priority: int
    stack_mode: str
    adjustment_type: str
    adjustment_value: Decimal | None = None
    site_class_id: uuid.UUID | None = None
    dow_mask: list[int] | None = None
    start_date: date | None = None
    end_date: date | None = None
    min_nights: int | None = None
    min_rate_cap: int | None = None
    max_rate_cap: int | None = None
    demand_band_id: uuid.UUID | None = None
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_value(self) -> str | None:
        """``"10"`` for +10%, ``"-5.00"`` for $5 off."""
        return _display_adjustment(self.adjustment_type, self.adjustment_value)


class PricingRuleListResponse(BaseModel):
    items: list[PricingRuleResponse]
    total: int


class DemandBandResponse(BaseModel):
    id: uuid.UUID
    campground_id: uuid.UUID
    name: str
    threshold_pct: int
    adjustment_type: str
    adjustment_value: Decimal
    active: bool

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_value(self) -> str | None:
        return _display_adjustment(self.adjustment_type, self.adjustment_value)
