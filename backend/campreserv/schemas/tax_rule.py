"""Pydantic v2 request/response schemas for tax rule endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field

from campreserv.rules.normalizer import ValueKind, format_display
from campreserv.schemas.common import OptionalFlag

_TAX_TYPE_PATTERN = "^(percentage|flat|exemption)$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TaxRuleCreate(BaseModel):
    """Schema for creating a tax rule.

    ``rate`` is a whole-number percent for ``percentage`` rules and integer cents
    for ``flat`` rules; exemptions carry no rate.
    """

    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., pattern=_TAX_TYPE_PATTERN)
    rate: Decimal | None = None
    min_nights: int | None = Field(None, ge=1)
    max_nights: int | None = Field(None, ge=1)
    requires_waiver: bool = False
    waiver_text: str | None = None
    is_active: bool = True


class TaxRuleUpdate(BaseModel):
    """Schema for partially updating a tax rule. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=100)
    type: str | None = Field(None, pattern=_TAX_TYPE_PATTERN)
    rate: Decimal | None = None
    min_nights: int | None = Field(None, ge=1)
    max_nights: int | None = Field(None, ge=1)
    requires_waiver: OptionalFlag = None
    waiver_text: str | None = None
    is_active: OptionalFlag = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TaxRuleResponse(BaseModel):
    """Tax rule returned from the API, with the rate as the settings page shows it."""

    id: uuid.UUID
    campground_id: uuid.UUID
    name: str
    type: str
    rate: Decimal | None = None
    min_nights: int | None = None
    max_nights: int | None = None
    requires_waiver: bool
    waiver_text: str | None = None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def display_rate(self) -> str | None:
        if self.type == "percentage":
            return format_display(ValueKind.TAX_PERCENTAGE, self.rate)
        if self.type == "flat":
            return format_display(ValueKind.CURRENCY, self.rate)
        return None


class TaxRuleListResponse(BaseModel):
    items: list[TaxRuleResponse]
    total: int
