"""Pydantic v2 schemas for quote preview and issue endpoints."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class QuoteRequest(BaseModel):
    """A prospective stay to price and admit.

    ``base_rate_cents`` overrides base-rate resolution. ``lead_time_days``
    defaults to the days between today and arrival. ``occupancy_fraction`` is
    the forecast occupancy (0-1) used by demand rules.
    """

    site_id: uuid.UUID | None = None
    site_class_id: uuid.UUID | None = None
    arrival_date: date
    departure_date: date
    base_rate_cents: int | None = Field(None, ge=0)
    lead_time_days: int | None = Field(None, ge=0)
    occupancy_fraction: float | None = Field(None, ge=0, le=1)
    promo_code: str | None = Field(None, max_length=50)
    waiver_signed: bool = False

    @model_validator(mode="after")
    def check_dates(self) -> "QuoteRequest":
        """Validate that departure is after arrival and a site or class is given."""
        if self.departure_date <= self.arrival_date:
            raise ValueError("departure_date must be after arrival_date")
        if self.site_id is None and self.site_class_id is None:
            raise ValueError("site_id or site_class_id is required")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AppliedRuleResponse(BaseModel):
    rule_id: uuid.UUID
    name: str
    stack_mode: str
    adjustment_cents: int

    model_config = ConfigDict(from_attributes=True)


class NightlyPriceResponse(BaseModel):
    night: date
    base_cents: int
    adjustment_cents: int
    demand_adjustment_cents: int
    rate_cents: int
    capped_at: str | None = None
    applied_rules: list[AppliedRuleResponse]

    model_config = ConfigDict(from_attributes=True)


class TaxLineResponse(BaseModel):
    rule_id: uuid.UUID
    name: str
    amount_cents: int

    model_config = ConfigDict(from_attributes=True)


class QuoteResponse(BaseModel):
    """Full price breakdown of an admitted stay."""

    quote_id: uuid.UUID | None = None
    site_class_id: uuid.UUID | None = None
    arrival_date: date
    departure_date: date
    nights: int
    base_subtotal_cents: int
    adjustments_cents: int
    demand_adjustment_cents: int
    total_before_tax_cents: int
    effective_nightly_rate_cents: int
    capped_at: str | None = None
    discount_cents: int = 0
    promotion_code: str | None = None
    taxes_cents: int = 0
    tax_exempt: bool = False
    waiver_required: bool = False
    waiver_text: str | None = None
    total_cents: int
    min_nights: int
    max_nights: int
    applied_rules: list[AppliedRuleResponse]
    tax_lines: list[TaxLineResponse]
    nightly: list[NightlyPriceResponse]


class QuoteDecisionResponse(BaseModel):
    """Preview result: either an admitted quote or the violation that rejects it."""

    admitted: bool
    violation: str | None = None
    message: str | None = None
    quote: QuoteResponse | None = None


class RuleUsageResponse(BaseModel):
    rule_kind: str
    rule_id: uuid.UUID
    amount_cents: int

    model_config = ConfigDict(from_attributes=True)


class IssuedQuoteResponse(BaseModel):
    """A persisted quote snapshot."""

    id: uuid.UUID
    campground_id: uuid.UUID
    site_id: uuid.UUID | None = None
    site_class_id: uuid.UUID | None = None
    arrival_date: date
    departure_date: date
    nights: int
    base_subtotal_cents: int
    adjustments_cents: int
    demand_adjustment_cents: int
    total_before_tax_cents: int
    discount_cents: int
    taxes_cents: int
    total_cents: int
    promotion_code: str | None = None
    breakdown: dict
    rule_usages: list[RuleUsageResponse]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class IssuedQuoteListResponse(BaseModel):
    items: list[IssuedQuoteResponse]
    total: int
