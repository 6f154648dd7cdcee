"""Rule store: tenant-scoped create/update/delete/toggle/list for every rule family.

Every operation takes the campground (``TenantContext``) explicitly and never
touches rows of another campground: a row of another tenant is reported as
not found. Invariants are checked on the merged state of the row before
anything is written, so a rejected update leaves the stored row unchanged.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.errors import ConflictError, NotFoundError, ValidationError
from campreserv.models.blackout import BlackoutDate
from campreserv.models.campground import Site, SiteClass
from campreserv.models.pricing_rule import DemandBand, PricingRule
from campreserv.models.promotion import Promotion
from campreserv.models.quote import QuoteRuleUsage
from campreserv.models.seasonal_rate import SeasonalRate, SeasonalRateWindow
from campreserv.models.stay_rule import StayRule
from campreserv.models.tax_rule import TaxRule
from campreserv.rules import validators
from campreserv.services.audit_service import record_change
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reference:
    """A column pointing at another tenant-scoped row (or a JSON list of ids)."""

    field: str
    model: type
    label: str
    many: bool = False


@dataclass(frozen=True)
class RuleFamily:
    kind: str
    label: str
    model: type
    validate: Callable[[Any], None]
    active_field: str = "is_active"
    order_by: tuple[str, ...] = ("sort_order",)
    json_fields: tuple[str, ...] = ()
    references: tuple[Reference, ...] = ()
    # child collection name -> child model; payload replaces the whole collection
    children: dict[str, type] = field(default_factory=dict)
    unique_field: str | None = None
    tracks_usage: bool = False
    # (model, column) pairs whose rows must be detached before a delete
    referenced_by: tuple[tuple[type, str], ...] = ()
    prepare: Callable[[dict[str, Any], dict[str, Any]], None] | None = None


def _null_exemption_rate(merged: dict[str, Any], data: dict[str, Any]) -> None:
    """Switching a tax rule to exemption without sending a rate clears the old rate.

    A rate sent alongside an exemption is left for the validator to reject.
    """
    if data.get("type") == "exemption" and "rate" not in data and merged.get("rate") is not None:
        merged["rate"] = None
        data["rate"] = None


TAX_RULES = RuleFamily(
    kind="tax_rule",
    label="Tax rule",
    model=TaxRule,
    validate=validators.validate_tax_rule,
    tracks_usage=True,
    prepare=_null_exemption_rate,
)

PRICING_RULES = RuleFamily(
    kind="pricing_rule",
    label="Pricing rule",
    model=PricingRule,
    validate=validators.validate_pricing_rule,
    active_field="active",
    order_by=("priority", "sort_order"),
    json_fields=("dow_mask",),
    references=(
        Reference("site_class_id", SiteClass, "site class"),
        Reference("demand_band_id", DemandBand, "demand band"),
    ),
    tracks_usage=True,
)

DEMAND_BANDS = RuleFamily(
    kind="demand_band",
    label="Demand band",
    model=DemandBand,
    validate=validators.validate_demand_band,
    active_field="active",
    order_by=("threshold_pct", "sort_order"),
    referenced_by=((PricingRule, "demand_band_id"),),
)

SEASONAL_RATES = RuleFamily(
    kind="seasonal_rate",
    label="Seasonal rate",
    model=SeasonalRate,
    validate=validators.validate_seasonal_rate,
    references=(Reference("site_class_id", SiteClass, "site class"),),
    children={"windows": SeasonalRateWindow},
)

STAY_RULES = RuleFamily(
    kind="stay_rule",
    label="Stay rule",
    model=StayRule,
    validate=validators.validate_stay_rule,
    json_fields=("site_classes", "date_ranges"),
    references=(Reference("site_classes", SiteClass, "site class", many=True),),
)

BLACKOUTS = RuleFamily(
    kind="blackout",
    label="Blackout",
    model=BlackoutDate,
    validate=validators.validate_blackout,
    order_by=("start_date", "sort_order"),
    json_fields=("site_class_ids",),
    references=(
        Reference("site_id", Site, "site"),
        Reference("site_class_ids", SiteClass, "site class", many=True),
    ),
)

PROMOTIONS = RuleFamily(
    kind="promotion",
    label="Promotion",
    model=Promotion,
    validate=validators.validate_promotion,
    unique_field="code",
    tracks_usage=True,
)

FAMILIES: dict[str, RuleFamily] = {
    family.kind: family
    for family in (TAX_RULES, PRICING_RULES, DEMAND_BANDS, SEASONAL_RATES, STAY_RULES, BLACKOUTS, PROMOTIONS)
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _column_names(family: RuleFamily) -> list[str]:
    return [attr.key for attr in inspect(family.model).column_attrs]


def _column_defaults(family: RuleFamily) -> dict[str, Any]:
    """Scalar column defaults; every other omitted column reads as None."""
    defaults: dict[str, Any] = {}
    for column in inspect(family.model).columns:
        default = column.default
        defaults[column.key] = default.arg if default is not None and default.is_scalar else None
    for name in family.children:
        defaults[name] = []
    return defaults


def _child_state(child: Any) -> SimpleNamespace:
    return SimpleNamespace(start_date=child.start_date, end_date=child.end_date)


def _snapshot(family: RuleFamily, rule: Any) -> dict[str, Any]:
    state = {name: getattr(rule, name) for name in _column_names(family)}
    for name in family.children:
        state[name] = [_child_state(child) for child in getattr(rule, name)]
    return state


def _prepare_payload(family: RuleFamily, data: dict[str, Any]) -> dict[str, Any]:
    data = dict(data)
    for name in family.json_fields:
        if name in data and data[name] is not None:
            data[name] = jsonable_encoder(data[name])
    return data


def _merged_view(family: RuleFamily, merged: dict[str, Any]) -> SimpleNamespace:
    view = dict(merged)
    for name in family.children:
        view[name] = [
            item if isinstance(item, SimpleNamespace) else SimpleNamespace(**item) for item in view.get(name) or []
        ]
    return SimpleNamespace(**view)


def _diff(family: RuleFamily, before: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for name, value in data.items():
        old = before.get(name)
        if name in family.children:
            old = [{"start_date": c.start_date, "end_date": c.end_date} for c in old or []]
        if old != value:
            changes[name] = {"from": old, "to": value}
    return jsonable_encoder(changes)


async def _check_references(db: AsyncSession, family: RuleFamily, tenant: TenantContext, merged: dict) -> None:
    """Referenced sites, site classes and bands must belong to the same campground."""
    for ref in family.references:
        value = merged.get(ref.field)
        if not value:
            continue
        ids = {uuid.UUID(str(v)) for v in value} if ref.many else {uuid.UUID(str(value))}
        result = await db.execute(
            select(func.count())
            .select_from(ref.model)
            .where(ref.model.id.in_(ids), ref.model.campground_id == tenant.campground_id)
        )
        if result.scalar_one() != len(ids):
            raise ValidationError(f"Unknown {ref.label}", field=ref.field)


async def _check_unique(
    db: AsyncSession,
    family: RuleFamily,
    tenant: TenantContext,
    merged: dict[str, Any],
    exclude_id: uuid.UUID | None = None,
) -> None:
    if family.unique_field is None:
        return
    column = getattr(family.model, family.unique_field)
    query = select(family.model.id).where(
        family.model.campground_id == tenant.campground_id,
        column == merged.get(family.unique_field),
    )
    if exclude_id is not None:
        query = query.where(family.model.id != exclude_id)
    if (await db.execute(query)).first() is not None:
        raise ConflictError(
            f"{family.label} {family.unique_field} {merged.get(family.unique_field)!r} already exists",
            field=family.unique_field,
        )


async def _next_sort_order(db: AsyncSession, family: RuleFamily, tenant: TenantContext) -> int:
    result = await db.execute(
        select(func.coalesce(func.max(family.model.sort_order), 0)).where(
            family.model.campground_id == tenant.campground_id
        )
    )
    return result.scalar_one() + 1


def _apply(family: RuleFamily, rule: Any, data: dict[str, Any]) -> None:
    for name, value in data.items():
        child_model = family.children.get(name)
        if child_model is not None:
            setattr(rule, name, [child_model(**item) for item in value])
        else:
            setattr(rule, name, value)


async def _flush(db: AsyncSession, family: RuleFamily, rule: Any) -> None:
    try:
        await db.flush()
    except IntegrityError as exc:
        logger.warning("Integrity error saving %s: %s", family.kind, exc.orig)
        raise ConflictError(f"{family.label} conflicts with an existing row") from exc
    await db.refresh(rule)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


async def get_rule(db: AsyncSession, family: RuleFamily, tenant: TenantContext, rule_id: uuid.UUID) -> Any:
    """Fetch one row of ``family``; rows of other campgrounds are not found."""
    result = await db.execute(
        select(family.model).where(family.model.id == rule_id, family.model.campground_id == tenant.campground_id)
    )
    rule = result.scalar_one_or_none()
    if rule is None:
        raise NotFoundError(f"{family.label} not found")
    return rule


async def list_rules(
    db: AsyncSession,
    family: RuleFamily,
    tenant: TenantContext,
    *,
    active: bool | None = None,
    filters: dict[str, Any] | None = None,
    skip: int = 0,
    limit: int | None = None,
) -> tuple[list[Any], int]:
    """Rows of one campground in evaluation order, with the unpaginated total."""
    conditions = [family.model.campground_id == tenant.campground_id]
    if active is not None:
        conditions.append(getattr(family.model, family.active_field) == active)
    for name, value in (filters or {}).items():
        if value is not None:
            conditions.append(getattr(family.model, name) == value)

    total = (await db.execute(select(func.count()).select_from(family.model).where(*conditions))).scalar_one()

    query = select(family.model).where(*conditions)
    query = query.order_by(*(getattr(family.model, name) for name in family.order_by)).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def create_rule(
    db: AsyncSession,
    family: RuleFamily,
    tenant: TenantContext,
    data: dict[str, Any],
    *,
    actor: str | None = None,
) -> Any:
    """Validate and insert a row at the end of the campground's insertion order."""
    data = _prepare_payload(family, data)
    merged = {**_column_defaults(family), **data}
    if family.prepare is not None:
        family.prepare(merged, data)
    family.validate(_merged_view(family, merged))
    await _check_references(db, family, tenant, merged)
    await _check_unique(db, family, tenant, merged)

    rule = family.model(
        campground_id=tenant.campground_id,
        sort_order=await _next_sort_order(db, family, tenant),
    )
    _apply(family, rule, data)
    db.add(rule)
    await _flush(db, family, rule)

    await record_change(
        db, tenant, rule_kind=family.kind, rule_id=rule.id, action="create", actor=actor, changes=data
    )
    return rule


async def update_rule(
    db: AsyncSession,
    family: RuleFamily,
    tenant: TenantContext,
    rule_id: uuid.UUID,
    data: dict[str, Any],
    *,
    actor: str | None = None,
    action: str = "update",
) -> Any:
    """Apply a partial update. The merged row must still satisfy every invariant."""
    rule = await get_rule(db, family, tenant, rule_id)
    data = _prepare_payload(family, data)
    before = _snapshot(family, rule)
    merged = {**before, **data}
    if family.prepare is not None:
        family.prepare(merged, data)
    family.validate(_merged_view(family, merged))
    await _check_references(db, family, tenant, data)
    await _check_unique(db, family, tenant, merged, exclude_id=rule.id)

    changes = _diff(family, before, data)
    if not changes:
        return rule

    _apply(family, rule, data)
    await _flush(db, family, rule)
    await record_change(
        db, tenant, rule_kind=family.kind, rule_id=rule.id, action=action, actor=actor, changes=changes
    )
    return rule


async def set_active(
    db: AsyncSession,
    family: RuleFamily,
    tenant: TenantContext,
    rule_id: uuid.UUID,
    active: bool,
    *,
    actor: str | None = None,
) -> Any:
    """Idempotent: setting the current state again is a no-op."""
    return await update_rule(
        db, family, tenant, rule_id, {family.active_field: active}, actor=actor, action="toggle"
    )


async def usage_count(db: AsyncSession, family: RuleFamily, rule: Any) -> int:
    """Issued quotes that used ``rule``; promotions also count their redemptions."""
    if not family.tracks_usage:
        return 0
    result = await db.execute(
        select(func.count())
        .select_from(QuoteRuleUsage)
        .where(QuoteRuleUsage.rule_kind == family.kind, QuoteRuleUsage.rule_id == rule.id)
    )
    used = result.scalar_one()
    if family is PROMOTIONS:
        used = max(used, rule.usage_count or 0)
    return used


async def delete_rule(
    db: AsyncSession,
    family: RuleFamily,
    tenant: TenantContext,
    rule_id: uuid.UUID,
    *,
    actor: str | None = None,
) -> None:
    """Delete a row unless issued quotes reference it; deactivate those instead."""
    rule = await get_rule(db, family, tenant, rule_id)
    used = await usage_count(db, family, rule)
    if used:
        raise ConflictError(
            f"{family.label} has been used by {used} issued quote(s); deactivate it instead",
        )

    for model, column in family.referenced_by:
        result = await db.execute(
            select(func.count()).select_from(model).where(getattr(model, column) == rule.id)
        )
        if result.scalar_one():
            raise ConflictError(f"{family.label} is still referenced by {model.__tablename__}")

    state = _snapshot(family, rule)
    snapshot = jsonable_encoder({name: value for name, value in state.items() if name not in family.children})
    await db.delete(rule)
    await db.flush()
    await record_change(
        db, tenant, rule_kind=family.kind, rule_id=rule_id, action="delete", actor=actor, changes=snapshot
    )
