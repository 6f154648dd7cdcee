"""Quote service: admit a stay, price it, and optionally issue it.

``build_quote`` is read-only and backs the preview endpoint. ``issue_quote``
runs the same computation, redeems the promotion and persists the amounts
together with the usage history of every rule that contributed.
"""

import logging
import uuid
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.errors import ConstraintViolation, NotFoundError, ValidationError
from campreserv.models.campground import Campground, Site, SiteClass
from campreserv.models.promotion import Promotion
from campreserv.models.quote import Quote, QuoteRuleUsage
from campreserv.rules.constraints import StayBounds, StayRequest, check_stay, promotion_discount
from campreserv.rules.pricing import PricingBreakdown, evaluate, resolve_base_rate
from campreserv.rules.taxes import TaxResult, compute_taxes
from campreserv.schemas.quote import QuoteRequest
from campreserv.services import rule_store
from campreserv.services.promotion_service import find_by_code, redeem_promotion
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)


@dataclass
class QuoteComputation:
    request: QuoteRequest
    site_id: uuid.UUID | None
    site_class_id: uuid.UUID
    bounds: StayBounds
    pricing: PricingBreakdown
    taxes: TaxResult
    promotion: Promotion | None
    discount_cents: int

    @property
    def taxable_cents(self) -> int:
        return self.pricing.total_before_tax_cents - self.discount_cents

    @property
    def total_cents(self) -> int:
        return self.taxable_cents + self.taxes.taxes_cents

    def to_response(self, quote_id: uuid.UUID | None = None) -> dict[str, Any]:
        return {
            "quote_id": quote_id,
            "site_class_id": self.site_class_id,
            "arrival_date": self.request.arrival_date,
            "departure_date": self.request.departure_date,
            "nights": self.pricing.nights,
            "base_subtotal_cents": self.pricing.base_subtotal_cents,
            "adjustments_cents": self.pricing.adjustments_cents,
            "demand_adjustment_cents": self.pricing.demand_adjustment_cents,
            "total_before_tax_cents": self.pricing.total_before_tax_cents,
            "effective_nightly_rate_cents": self.pricing.effective_nightly_rate_cents,
            "capped_at": self.pricing.capped_at,
            "discount_cents": self.discount_cents,
            "promotion_code": self.promotion.code if self.promotion else None,
            "taxes_cents": self.taxes.taxes_cents,
            "tax_exempt": self.taxes.exemption_applied,
            "waiver_required": self.taxes.waiver_required,
            "waiver_text": self.taxes.waiver_text,
            "total_cents": self.total_cents,
            "min_nights": self.bounds.min_nights,
            "max_nights": self.bounds.max_nights,
            "applied_rules": [asdict(rule) for rule in self.pricing.applied_rules],
            "tax_lines": [asdict(line) for line in self.taxes.lines],
            "nightly": [asdict(night) for night in self.pricing.nightly],
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _resolve_site(
    db: AsyncSession, tenant: TenantContext, request: QuoteRequest
) -> tuple[Site | None, SiteClass]:
    site = None
    site_class_id = request.site_class_id
    if request.site_id is not None:
        result = await db.execute(
            select(Site).where(Site.id == request.site_id, Site.campground_id == tenant.campground_id)
        )
        site = result.scalar_one_or_none()
        if site is None:
            raise NotFoundError("Site not found")
        if site_class_id is not None and site_class_id != site.site_class_id:
            raise ValidationError("Site does not belong to the requested site class", field="site_class_id")
        site_class_id = site.site_class_id

    result = await db.execute(
        select(SiteClass).where(SiteClass.id == site_class_id, SiteClass.campground_id == tenant.campground_id)
    )
    site_class = result.scalar_one_or_none()
    if site_class is None:
        raise NotFoundError("Site class not found")
    return site, site_class


async def _active(db: AsyncSession, family: rule_store.RuleFamily, tenant: TenantContext) -> list[Any]:
    rows, _ = await rule_store.list_rules(db, family, tenant, active=True)
    return rows


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def build_quote(
    db: AsyncSession,
    tenant: TenantContext,
    request: QuoteRequest,
    *,
    today: date | None = None,
) -> QuoteComputation:
    """Check the stay and price it. Raises ``ConstraintViolation`` on rejection."""
    today = today or date.today()
    campground = await db.get(Campground, tenant.campground_id)
    if campground is None:
        raise NotFoundError("Campground not found")
    site, site_class = await _resolve_site(db, tenant, request)

    lead_time = request.lead_time_days
    if lead_time is None:
        lead_time = max(0, (request.arrival_date - today).days)
    stay = StayRequest(
        arrival=request.arrival_date,
        departure=request.departure_date,
        site_class_id=site_class.id,
        site_id=site.id if site else None,
        lead_time_days=lead_time,
    )

    promotion = await find_by_code(db, tenant, request.promo_code) if request.promo_code else None
    bounds = check_stay(
        tenant=tenant,
        request=stay,
        blackouts=await _active(db, rule_store.BLACKOUTS, tenant),
        stay_rules=await _active(db, rule_store.STAY_RULES, tenant),
        default_min=campground.default_min_nights,
        default_max=campground.default_max_nights,
        promotion=promotion,
        promo_code=request.promo_code,
        on=today,
    )

    if request.base_rate_cents is not None:
        base_rate: Any = request.base_rate_cents
    else:
        base_rate = resolve_base_rate(
            await _active(db, rule_store.SEASONAL_RATES, tenant),
            site_class_id=site_class.id,
            nights=stay.nights,
            fallback_cents=site_class.default_rate_cents,
        )

    occupancy_pct = request.occupancy_fraction * 100 if request.occupancy_fraction is not None else None
    pricing = evaluate(
        await _active(db, rule_store.PRICING_RULES, tenant),
        tenant=tenant,
        site_class_id=site_class.id,
        arrival=request.arrival_date,
        departure=request.departure_date,
        base_rate=base_rate,
        occupancy_pct=occupancy_pct,
    )

    discount = promotion_discount(promotion, pricing.total_before_tax_cents) if promotion else 0
    taxes = compute_taxes(
        await _active(db, rule_store.TAX_RULES, tenant),
        tenant=tenant,
        taxable_cents=pricing.total_before_tax_cents - discount,
        nights=pricing.nights,
        waiver_signed=request.waiver_signed,
    )

    return QuoteComputation(
        request=request,
        site_id=site.id if site else None,
        site_class_id=site_class.id,
        bounds=bounds,
        pricing=pricing,
        taxes=taxes,
        promotion=promotion,
        discount_cents=discount,
    )


async def preview_quote(
    db: AsyncSession,
    tenant: TenantContext,
    request: QuoteRequest,
    *,
    today: date | None = None,
) -> dict[str, Any]:
    """Admit-or-reject decision without writing anything."""
    try:
        computation = await build_quote(db, tenant, request, today=today)
    except ConstraintViolation as exc:
        return {"admitted": False, "violation": exc.violation.value, "message": exc.message, "quote": None}
    return {"admitted": True, "violation": None, "message": None, "quote": computation.to_response()}


async def issue_quote(
    db: AsyncSession,
    tenant: TenantContext,
    request: QuoteRequest,
    *,
    today: date | None = None,
) -> Quote:
    """Check, price, redeem the promotion and persist the quote snapshot."""
    computation = await build_quote(db, tenant, request, today=today)
    if computation.promotion is not None:
        await redeem_promotion(db, tenant, computation.promotion)

    quote = Quote(
        campground_id=tenant.campground_id,
        site_id=computation.site_id,
        site_class_id=computation.site_class_id,
        arrival_date=request.arrival_date,
        departure_date=request.departure_date,
        nights=computation.pricing.nights,
        base_subtotal_cents=computation.pricing.base_subtotal_cents,
        adjustments_cents=computation.pricing.adjustments_cents,
        demand_adjustment_cents=computation.pricing.demand_adjustment_cents,
        total_before_tax_cents=computation.pricing.total_before_tax_cents,
        discount_cents=computation.discount_cents,
        taxes_cents=computation.taxes.taxes_cents,
        total_cents=computation.total_cents,
        promotion_code=computation.promotion.code if computation.promotion else None,
        breakdown=jsonable_encoder(computation.to_response()),
    )

    usages = [
        QuoteRuleUsage(rule_kind="pricing_rule", rule_id=rule.rule_id, amount_cents=rule.adjustment_cents)
        for rule in computation.pricing.applied_rules
    ]
    usages += [
        QuoteRuleUsage(rule_kind="tax_rule", rule_id=line.rule_id, amount_cents=line.amount_cents)
        for line in computation.taxes.lines
    ]
    if computation.taxes.exemption_rule_id is not None:
        usages.append(QuoteRuleUsage(rule_kind="tax_rule", rule_id=computation.taxes.exemption_rule_id))
    if computation.promotion is not None:
        usages.append(
            QuoteRuleUsage(
                rule_kind="promotion",
                rule_id=computation.promotion.id,
                amount_cents=computation.discount_cents,
            )
        )
    quote.rule_usages = usages

    db.add(quote)
    await db.flush()
    await db.refresh(quote)
    logger.info(
        "Issued quote %s for campground %s: %s nights, total %s cents",
        quote.id,
        tenant.campground_id,
        quote.nights,
        quote.total_cents,
    )
    return quote


async def get_quote(db: AsyncSession, tenant: TenantContext, quote_id: uuid.UUID) -> Quote:
    result = await db.execute(
        select(Quote).where(Quote.id == quote_id, Quote.campground_id == tenant.campground_id)
    )
    quote = result.scalar_one_or_none()
    if quote is None:
        raise NotFoundError("Quote not found")
    return quote


async def list_quotes(
    db: AsyncSession, tenant: TenantContext, *, skip: int = 0, limit: int = 20
) -> tuple[list[Quote], int]:
    total = (
        await db.execute(select(func.count()).select_from(Quote).where(Quote.campground_id == tenant.campground_id))
    ).scalar_one()
    result = await db.execute(
        select(Quote)
        .where(Quote.campground_id == tenant.campground_id)
        .order_by(Quote.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total
