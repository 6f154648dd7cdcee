"""Invariant checks run on the merged state of a rule before every save.

Request schemas catch malformed single fields; these checks cover the
cross-field invariants that a partial update can break.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from campreserv.errors import ValidationError
from campreserv.rules.pricing import ADJUSTMENT_TYPES, RULE_TYPES, STACK_MODES
from campreserv.rules.taxes import TAX_TYPES

BLACKOUT_CATEGORIES = ("maintenance", "seasonal", "event", "emergency", "other")
RATE_TYPES = ("nightly", "weekly", "monthly", "seasonal")
PROMOTION_TYPES = ("percentage", "flat")


def _require_name(rule: Any, field: str = "name") -> None:
    name = getattr(rule, field)
    if not name or not str(name).strip():
        raise ValidationError("Name is required", field=field)
    if len(name) > 100:
        raise ValidationError("Name must be less than 100 characters", field=field)


def _require_choice(value: Any, choices: tuple[str, ...], field: str) -> None:
    if value not in choices:
        raise ValidationError(f"{field} must be one of {', '.join(choices)}", field=field)


def _check_night_bounds(min_nights: int | None, max_nights: int | None) -> None:
    if min_nights is not None and min_nights < 1:
        raise ValidationError("Minimum nights must be at least 1", field="min_nights")
    if max_nights is not None and max_nights < 1:
        raise ValidationError("Maximum nights must be at least 1", field="max_nights")
    if min_nights is not None and max_nights is not None and min_nights > max_nights:
        raise ValidationError("Minimum nights cannot exceed maximum nights", field="max_nights")


def _check_window(start: date | None, end: date | None, field: str = "end_date") -> None:
    if start is not None and end is not None and end < start:
        raise ValidationError("End date must be on or after start date", field=field)


def validate_tax_rule(rule: Any) -> None:
    _require_name(rule)
    _require_choice(rule.type, TAX_TYPES, "type")
    if rule.type == "exemption":
        if rule.rate is not None:
            raise ValidationError("Exemptions cannot have a rate", field="rate")
    else:
        if rule.rate is None or Decimal(str(rule.rate)) <= 0:
            raise ValidationError("Rate must be greater than zero", field="rate")
        if rule.type == "percentage" and Decimal(str(rule.rate)) > 100:
            raise ValidationError("Percentage rate cannot exceed 100", field="rate")
    _check_night_bounds(rule.min_nights, rule.max_nights)
    if rule.requires_waiver and not (rule.waiver_text or "").strip():
        raise ValidationError("Waiver text is required when a waiver is required", field="waiver_text")


def validate_pricing_rule(rule: Any) -> None:
    _require_name(rule)
    _require_choice(rule.type, RULE_TYPES, "type")
    _require_choice(rule.stack_mode, STACK_MODES, "stack_mode")
    _require_choice(rule.adjustment_type, ADJUSTMENT_TYPES, "adjustment_type")
    if rule.priority is None or not 0 <= rule.priority <= 999:
        raise ValidationError("Priority must be between 0 and 999", field="priority")

    if rule.demand_band_id is not None and rule.type != "demand":
        raise ValidationError("Only demand rules can reference a demand band", field="demand_band_id")
    if rule.adjustment_value is None and rule.demand_band_id is None:
        raise ValidationError("Adjustment value is required", field="adjustment_value")

    has_window = rule.start_date is not None or rule.end_date is not None
    if rule.dow_mask and has_window:
        raise ValidationError(
            "A rule is scoped either by days of week or by a date window, not both",
            field="dow_mask",
        )
    if rule.dow_mask and any(int(day) not in range(7) for day in rule.dow_mask):
        raise ValidationError("Days of week must be between 0 (Sunday) and 6 (Saturday)", field="dow_mask")
    _check_window(rule.start_date, rule.end_date)

    if rule.min_nights is not None and rule.min_nights < 1:
        raise ValidationError("Minimum nights must be at least 1", field="min_nights")
    if rule.min_rate_cap is not None and rule.min_rate_cap < 0:
        raise ValidationError("Min rate cap must be a valid positive number", field="min_rate_cap")
    if rule.max_rate_cap is not None and rule.max_rate_cap < 0:
        raise ValidationError("Max rate cap must be a valid positive number", field="max_rate_cap")
    if rule.min_rate_cap is not None and rule.max_rate_cap is not None and rule.max_rate_cap < rule.min_rate_cap:
        raise ValidationError("Max rate cap must be greater than or equal to min rate cap", field="max_rate_cap")


def validate_demand_band(band: Any) -> None:
    _require_name(band)
    _require_choice(band.adjustment_type, ADJUSTMENT_TYPES, "adjustment_type")
    if band.threshold_pct is None or not 0 <= band.threshold_pct <= 100:
        raise ValidationError("Threshold must be between 0 and 100", field="threshold_pct")
    if band.adjustment_value is None:
        raise ValidationError("Adjustment value is required", field="adjustment_value")


def validate_seasonal_rate(rate: Any) -> None:
    _require_name(rate)
    _require_choice(rate.rate_type, RATE_TYPES, "rate_type")
    if rate.amount is None or rate.amount < 0:
        raise ValidationError("Amount cannot be negative", field="amount")
    if rate.min_nights is not None and rate.min_nights < 1:
        raise ValidationError("Minimum nights must be at least 1", field="min_nights")
    if not rate.windows:
        raise ValidationError("At least one date range is required", field="windows")
    for window in rate.windows:
        _check_window(window.start_date, window.end_date, field="windows")


def validate_stay_rule(rule: Any) -> None:
    _require_name(rule)
    if rule.min_nights is None or rule.max_nights is None:
        raise ValidationError("Minimum and maximum nights are required", field="min_nights")
    _check_night_bounds(rule.min_nights, rule.max_nights)
    if rule.ignore_days_before is not None and rule.ignore_days_before < 0:
        raise ValidationError("Days before arrival cannot be negative", field="ignore_days_before")
    for window in rule.date_ranges or []:
        _check_window(date.fromisoformat(window["start"]), date.fromisoformat(window["end"]), field="date_ranges")


def validate_blackout(blackout: Any) -> None:
    if blackout.start_date is None or blackout.end_date is None:
        raise ValidationError("Start and end dates are required", field="start_date")
    _check_window(blackout.start_date, blackout.end_date)
    _require_choice(blackout.category, BLACKOUT_CATEGORIES, "category")


def validate_promotion(promotion: Any) -> None:
    if not promotion.code or not promotion.code.strip():
        raise ValidationError("Promo code is required", field="code")
    _require_choice(promotion.type, PROMOTION_TYPES, "type")
    if promotion.value is None or Decimal(str(promotion.value)) <= 0:
        raise ValidationError("Discount value must be greater than zero", field="value")
    if promotion.type == "percentage" and Decimal(str(promotion.value)) > 100:
        raise ValidationError("Percentage discount cannot exceed 100", field="value")
    _check_window(promotion.valid_from, promotion.valid_to, field="valid_to")
    if promotion.usage_limit is not None and promotion.usage_limit < 1:
        raise ValidationError("Usage limit must be at least 1", field="usage_limit")
