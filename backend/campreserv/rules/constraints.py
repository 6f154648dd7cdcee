"""Stay admission checks: blackouts, stay length, promotion validity.

Checks run in that order and the first failure rejects the stay with a single
``ConstraintViolation``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_FLOOR, Decimal
from typing import Any

from campreserv.errors import ConstraintViolation, Violation
from campreserv.rules.pricing import compute_nights
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StayRequest:
    arrival: date
    departure: date
    site_class_id: Any = None
    site_id: Any = None
    lead_time_days: int = 0

    @property
    def nights(self) -> int:
        return compute_nights(self.arrival, self.departure)


@dataclass
class StayBounds:
    min_nights: int
    max_nights: int
    rule_ids: list[Any] = field(default_factory=list)
    bypassed_rule_ids: list[Any] = field(default_factory=list)


def _as_date(value: date | str) -> date:
    return value if isinstance(value, date) else date.fromisoformat(value)


def _same_id(left: Any, right: Any) -> bool:
    return left is not None and right is not None and str(left) == str(right)


def overlaps_stay(start: date | str, end: date | str, arrival: date, departure: date) -> bool:
    """Inclusive [start, end] against the stayed nights [arrival, departure)."""
    last_night = departure - timedelta(days=1) if departure > arrival else arrival
    return _as_date(start) <= last_night and _as_date(end) >= arrival


# ---------------------------------------------------------------------------
# Blackouts
# ---------------------------------------------------------------------------


def blackout_applies_to(blackout: Any, site_id: Any, site_class_id: Any) -> bool:
    """Park-wide blackouts apply to every site."""
    if blackout.site_id is None and not blackout.site_class_ids:
        return True
    if blackout.site_id is not None and _same_id(blackout.site_id, site_id):
        return True
    return any(_same_id(class_id, site_class_id) for class_id in blackout.site_class_ids or [])


def find_blocking_blackout(blackouts: Iterable[Any], *, tenant: TenantContext, request: StayRequest) -> Any | None:
    for blackout in blackouts:
        tenant.ensure_owns(blackout)
        if not blackout.is_active:
            continue
        if not overlaps_stay(blackout.start_date, blackout.end_date, request.arrival, request.departure):
            continue
        if blackout_applies_to(blackout, request.site_id, request.site_class_id):
            return blackout
    return None


# ---------------------------------------------------------------------------
# Stay length
# ---------------------------------------------------------------------------


def stay_rule_matches(rule: Any, request: StayRequest) -> bool:
    if rule.site_classes and not any(_same_id(c, request.site_class_id) for c in rule.site_classes):
        return False
    if not rule.date_ranges:
        return True
    return any(
        overlaps_stay(window["start"], window["end"], request.arrival, request.departure)
        for window in rule.date_ranges
    )


def effective_stay_bounds(
    stay_rules: Iterable[Any],
    *,
    tenant: TenantContext,
    request: StayRequest,
    default_min: int,
    default_max: int,
) -> StayBounds:
    """Intersect the bounds of every matching, non-bypassed stay rule.

    A rule is bypassed when the arrival is closer than ``ignore_days_before``
    days away. With no remaining rule the campground defaults apply.
    """
    mins: list[int] = []
    maxes: list[int] = []
    bounds = StayBounds(min_nights=default_min, max_nights=default_max)

    for rule in stay_rules:
        tenant.ensure_owns(rule)
        if not rule.is_active or not stay_rule_matches(rule, request):
            continue
        if request.lead_time_days < (rule.ignore_days_before or 0):
            logger.debug(
                "Stay rule %s bypassed: lead time %s < %s days",
                rule.id,
                request.lead_time_days,
                rule.ignore_days_before,
            )
            bounds.bypassed_rule_ids.append(rule.id)
            continue
        mins.append(rule.min_nights)
        maxes.append(rule.max_nights)
        bounds.rule_ids.append(rule.id)

    if mins:
        bounds.min_nights = max(mins)
        bounds.max_nights = min(maxes)
    return bounds


def check_stay_length(bounds: StayBounds, nights: int) -> None:
    if nights < bounds.min_nights:
        raise ConstraintViolation(
            Violation.MIN_NIGHTS,
            f"Minimum stay is {bounds.min_nights} nights; {nights} requested",
        )
    if nights > bounds.max_nights:
        raise ConstraintViolation(
            Violation.MAX_NIGHTS,
            f"Maximum stay is {bounds.max_nights} nights; {nights} requested",
        )


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------


def normalize_code(code: str) -> str:
    return code.strip().upper()


def check_promotion(promotion: Any | None, *, code: str, on: date) -> None:
    """Raise unless ``promotion`` can be redeemed on ``on``."""
    code = normalize_code(code)
    if promotion is None:
        raise ConstraintViolation(Violation.PROMOTION_UNKNOWN, f"Promo code {code} is not valid")
    if not promotion.is_active:
        raise ConstraintViolation(Violation.PROMOTION_INACTIVE, f"Promo code {code} is no longer active")
    if promotion.valid_from is not None and on < promotion.valid_from:
        raise ConstraintViolation(
            Violation.PROMOTION_NOT_STARTED,
            f"Promo code {code} is valid from {promotion.valid_from.isoformat()}",
        )
    if promotion.valid_to is not None and on > promotion.valid_to:
        raise ConstraintViolation(
            Violation.PROMOTION_EXPIRED,
            f"Promo code {code} expired on {promotion.valid_to.isoformat()}",
        )
    if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
        raise ConstraintViolation(
            Violation.PROMOTION_USAGE_LIMIT,
            f"Promo code {code} has reached its usage limit",
        )


def promotion_discount(promotion: Any, subtotal_cents: int) -> int:
    """Discount in cents, never more than the subtotal."""
    basis = max(0, subtotal_cents)
    value = Decimal(str(promotion.value))
    if promotion.type == "percentage":
        discount = int((Decimal(basis) * value / 100).to_integral_value(rounding=ROUND_FLOOR))
    else:
        discount = int(value)
    return min(basis, max(0, discount))


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def check_stay(
    *,
    tenant: TenantContext,
    request: StayRequest,
    blackouts: Iterable[Any],
    stay_rules: Iterable[Any],
    default_min: int,
    default_max: int,
    promotion: Any | None = None,
    promo_code: str | None = None,
    on: date | None = None,
) -> StayBounds:
    """Admit or reject a stay. Returns the effective stay bounds on admission."""
    blackout = find_blocking_blackout(blackouts, tenant=tenant, request=request)
    if blackout is not None:
        reason = f": {blackout.reason}" if blackout.reason else ""
        raise ConstraintViolation(
            Violation.BLACKOUT,
            f"Unavailable {blackout.start_date.isoformat()} to {blackout.end_date.isoformat()}{reason}",
        )

    bounds = effective_stay_bounds(
        stay_rules,
        tenant=tenant,
        request=request,
        default_min=default_min,
        default_max=default_max,
    )
    check_stay_length(bounds, request.nights)

    if promo_code:
        if promotion is not None:
            tenant.ensure_owns(promotion)
        check_promotion(promotion, code=promo_code, on=on or date.today())
    return bounds
