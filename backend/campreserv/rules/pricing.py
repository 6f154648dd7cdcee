"""Pricing rule evaluation.

Rules are composed night by night:

1. keep active rules whose site class matches (or is unscoped) and whose
   temporal predicate matches the night;
2. order by ``priority`` ascending, ties by insertion order;
3. fold ``additive`` (sum), ``max`` (keep the larger) and ``override``
   (replace the running total) adjustments, in cents;
4. clamp the night's rate to the tightest caps of the matched rules;
5. never go below zero.

Everything here is pure: rows are read, never written.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)

STACK_MODES = ("additive", "max", "override")
ADJUSTMENT_TYPES = ("percent", "flat")
RULE_TYPES = ("season", "weekend", "holiday", "event", "demand")


class MalformedRuleError(ValueError):
    """A stored rule is missing a field the evaluator needs."""


@dataclass(frozen=True)
class AppliedRule:
    rule_id: Any
    name: str
    stack_mode: str
    adjustment_cents: int


@dataclass
class NightlyPrice:
    night: date
    base_cents: int
    adjustment_cents: int = 0
    demand_adjustment_cents: int = 0
    rate_cents: int = 0
    capped_at: str | None = None  # "min" or "max"
    applied_rules: list[AppliedRule] = field(default_factory=list)


@dataclass
class PricingBreakdown:
    nights: int
    nightly: list[NightlyPrice]

    @property
    def base_subtotal_cents(self) -> int:
        return sum(n.base_cents for n in self.nightly)

    @property
    def adjustments_cents(self) -> int:
        return sum(n.adjustment_cents for n in self.nightly)

    @property
    def demand_adjustment_cents(self) -> int:
        return sum(n.demand_adjustment_cents for n in self.nightly)

    @property
    def total_before_tax_cents(self) -> int:
        return sum(n.rate_cents for n in self.nightly)

    @property
    def effective_nightly_rate_cents(self) -> int:
        return round_half_up(Decimal(self.total_before_tax_cents) / max(self.nights, 1))

    @property
    def capped_at(self) -> str | None:
        for night in self.nightly:
            if night.capped_at:
                return night.capped_at
        return None

    @property
    def applied_rules(self) -> list[AppliedRule]:
        """Rules that adjusted at least one night, totalled across the stay, in first-use order."""
        totals: dict[Any, AppliedRule] = {}
        for night in self.nightly:
            for applied in night.applied_rules:
                previous = totals.get(applied.rule_id)
                cents = applied.adjustment_cents + (previous.adjustment_cents if previous else 0)
                totals[applied.rule_id] = AppliedRule(applied.rule_id, applied.name, applied.stack_mode, cents)
        return list(totals.values())


def round_half_up(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def compute_nights(arrival: date, departure: date) -> int:
    """Number of nights of a stay; a same-day or inverted stay counts as one night."""
    return max(1, (departure - arrival).days)


def stay_nights(arrival: date, nights: int) -> list[date]:
    return [arrival + timedelta(days=offset) for offset in range(nights)]


def weekday_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday, matching the settings UI's day picker."""
    return (day.weekday() + 1) % 7


def compute_adjustment(adjustment_type: str, value: Decimal | int | float, base_cents: int) -> int:
    """Cents contributed by a single adjustment against ``base_cents``."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    if adjustment_type == "percent":
        return round_half_up(Decimal(base_cents) * amount)
    return round_half_up(amount)


def _as_date(value: date | str | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(value)


def rule_applies(rule: Any, night: date, nights: int) -> bool:
    """Temporal predicate: date window, weekday mask and minimum stay."""
    start = _as_date(rule.start_date)
    end = _as_date(rule.end_date)
    if start is not None and night < start:
        return False
    if end is not None and night > end:
        return False
    if rule.dow_mask and weekday_index(night) not in {int(d) for d in rule.dow_mask}:
        return False
    min_nights = getattr(rule, "min_nights", None)
    if min_nights is not None and nights < min_nights:
        return False
    return True


def matches_site_class(rule: Any, site_class_id: Any) -> bool:
    return rule.site_class_id is None or rule.site_class_id == site_class_id


def check_rule_shape(rule: Any) -> None:
    """Raise MalformedRuleError if ``rule`` cannot be evaluated."""
    if rule.stack_mode not in STACK_MODES:
        raise MalformedRuleError(f"unknown stack mode {rule.stack_mode!r}")
    if rule.adjustment_type not in ADJUSTMENT_TYPES:
        raise MalformedRuleError(f"unknown adjustment type {rule.adjustment_type!r}")
    if rule.priority is None:
        raise MalformedRuleError("missing priority")
    band = _demand_band(rule)
    if rule.adjustment_value is None and band is None:
        raise MalformedRuleError("missing adjustment value")


def _demand_band(rule: Any) -> Any:
    if rule.type != "demand":
        return None
    return getattr(rule, "demand_band", None)


def order_rules(rules: Iterable[Any]) -> list[Any]:
    """Priority ascending; equal priorities keep insertion order."""
    return sorted(rules, key=lambda r: (r.priority if r.priority is not None else 0, getattr(r, "sort_order", 0)))


def price_night(
    ordered_rules: list[Any],
    *,
    night: date,
    nights: int,
    base_cents: int,
    site_class_id: Any,
    occupancy_pct: float | None,
) -> NightlyPrice:
    """Compose the already-ordered rules for a single night."""
    result = NightlyPrice(night=night, base_cents=base_cents)
    total = 0
    demand_total = 0
    composed: list[AppliedRule] = []
    demand: list[AppliedRule] = []
    min_caps: list[int] = []
    max_caps: list[int] = []

    for rule in ordered_rules:
        if not rule.active:
            continue
        if not matches_site_class(rule, site_class_id) or not rule_applies(rule, night, nights):
            continue

        band = _demand_band(rule)
        if band is not None:
            if not band.active or occupancy_pct is None or occupancy_pct < band.threshold_pct:
                continue
            cents = compute_adjustment(band.adjustment_type, band.adjustment_value, base_cents)
            demand_total += cents
            demand.append(AppliedRule(rule.id, rule.name, rule.stack_mode, cents))
            _collect_caps(rule, min_caps, max_caps)
            continue

        value = Decimal(str(rule.adjustment_value))
        if value == 0:
            # An explicit no-op rule
            continue

        cents = compute_adjustment(rule.adjustment_type, value, base_cents)
        entry = AppliedRule(rule.id, rule.name, rule.stack_mode, cents)
        _collect_caps(rule, min_caps, max_caps)
        if rule.stack_mode == "additive":
            total += cents
            composed.append(entry)
        elif rule.stack_mode == "max" and cents <= total:
            continue
        else:
            # A winning max or an override replaces everything composed so far
            total = cents
            composed = [entry]

    rate = base_cents + total + demand_total
    if max_caps and rate > min(max_caps):
        rate = min(max_caps)
        result.capped_at = "max"
    if min_caps and rate < max(min_caps):
        rate = max(min_caps)
        result.capped_at = "min"

    result.adjustment_cents = total
    result.demand_adjustment_cents = demand_total
    result.applied_rules = composed + demand
    result.rate_cents = max(0, rate)
    return result


def _collect_caps(rule: Any, min_caps: list[int], max_caps: list[int]) -> None:
    if rule.min_rate_cap is not None:
        min_caps.append(int(rule.min_rate_cap))
    if rule.max_rate_cap is not None:
        max_caps.append(int(rule.max_rate_cap))


def evaluate(
    rules: Iterable[Any],
    *,
    tenant: TenantContext,
    site_class_id: Any,
    arrival: date,
    departure: date,
    base_rate: int | Callable[[date], int],
    occupancy_pct: float | None = None,
) -> PricingBreakdown:
    """Price a stay.

    ``base_rate`` is either a flat nightly rate in cents or a callable returning
    the base rate of a given night. Rows from another campground raise
    ``TenantMismatchError``; malformed rows are skipped with a warning. With no
    usable rules every night is priced at its base rate.
    """
    usable = []
    for rule in rules:
        tenant.ensure_owns(rule)
        try:
            check_rule_shape(rule)
        except MalformedRuleError as exc:
            logger.warning("Skipping malformed pricing rule %s (%s): %s", rule.id, rule.name, exc)
            continue
        usable.append(rule)

    ordered = order_rules(usable)
    nights = compute_nights(arrival, departure)
    base_for: Callable[[date], int] = base_rate if callable(base_rate) else (lambda _night: int(base_rate))

    nightly = [
        price_night(
            ordered,
            night=night,
            nights=nights,
            base_cents=base_for(night),
            site_class_id=site_class_id,
            occupancy_pct=occupancy_pct,
        )
        for night in stay_nights(arrival, nights)
    ]
    return PricingBreakdown(nights=nights, nightly=nightly)


def resolve_base_rate(
    seasonal_rates: Iterable[Any],
    *,
    site_class_id: Any,
    nights: int,
    fallback_cents: int,
) -> Callable[[date], int]:
    """Build a per-night base rate lookup from nightly seasonal rates.

    A site-class-scoped rate beats a campground-wide one; within a scope the
    first rate in insertion order wins. Nights no window covers use
    ``fallback_cents``.
    """
    candidates = [
        rate
        for rate in seasonal_rates
        if rate.is_active
        and rate.rate_type == "nightly"
        and (rate.site_class_id is None or rate.site_class_id == site_class_id)
        and (rate.min_nights is None or nights >= rate.min_nights)
    ]
    candidates.sort(key=lambda r: (r.site_class_id is None, getattr(r, "sort_order", 0)))

    def base_for(night: date) -> int:
        for rate in candidates:
            for window in rate.windows:
                if _as_date(window.start_date) <= night <= _as_date(window.end_date):
                    return int(rate.amount)
        return fallback_cents

    return base_for
