"""Tax computation over a stay's taxable subtotal."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from campreserv.rules.pricing import round_half_up
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)

TAX_TYPES = ("percentage", "flat", "exemption")


@dataclass(frozen=True)
class TaxLine:
    rule_id: Any
    name: str
    amount_cents: int


@dataclass
class TaxResult:
    taxes_cents: int = 0
    exemption_applied: bool = False
    exemption_rule_id: Any = None
    waiver_required: bool = False
    waiver_text: str | None = None
    lines: list[TaxLine] = field(default_factory=list)


def applies_to_stay(rule: Any, nights: int) -> bool:
    """Inclusive min/max night bounds; missing bounds are open."""
    if rule.min_nights is not None and nights < rule.min_nights:
        return False
    if rule.max_nights is not None and nights > rule.max_nights:
        return False
    return True


def compute_taxes(
    rules: Iterable[Any],
    *,
    tenant: TenantContext,
    taxable_cents: int,
    nights: int,
    waiver_signed: bool = False,
) -> TaxResult:
    """Apply exemptions first, then percentage and flat taxes.

    An exemption that requires an unsigned waiver does not apply; the result
    reports the waiver instead so the caller can ask the guest to sign it.
    Percentage taxes are ``rate`` percent of the taxable amount; flat taxes are
    ``rate`` cents per night.
    """
    active = []
    for rule in rules:
        tenant.ensure_owns(rule)
        if rule.is_active and applies_to_stay(rule, nights):
            active.append(rule)
    active.sort(key=lambda r: getattr(r, "sort_order", 0))

    result = TaxResult()
    for rule in active:
        if rule.type != "exemption":
            continue
        if rule.requires_waiver and not waiver_signed:
            result.waiver_required = True
            result.waiver_text = result.waiver_text or rule.waiver_text
            continue
        return TaxResult(exemption_applied=True, exemption_rule_id=rule.id)

    base = Decimal(max(0, taxable_cents))
    for rule in active:
        if rule.type not in ("percentage", "flat"):
            if rule.type != "exemption":
                logger.warning("Skipping tax rule %s with unknown type %r", rule.id, rule.type)
            continue
        if rule.rate is None or Decimal(str(rule.rate)) <= 0:
            logger.warning("Skipping tax rule %s (%s): missing or non-positive rate", rule.id, rule.name)
            continue
        rate = Decimal(str(rule.rate))
        if rule.type == "percentage":
            amount = round_half_up(base * rate / 100)
        else:
            amount = round_half_up(rate) * nights
        result.lines.append(TaxLine(rule.id, rule.name, amount))
        result.taxes_cents += amount
    return result
