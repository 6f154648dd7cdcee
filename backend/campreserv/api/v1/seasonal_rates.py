"""Seasonal rates API router, plus the rate-group calendar projection."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.seasonal_rate import SeasonalRate
from campreserv.rules.normalizer import ValueKind, format_display
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.schemas.seasonal_rate import (
    RateGroupResponse,
    SeasonalRateCreate,
    SeasonalRateListResponse,
    SeasonalRateResponse,
    SeasonalRateUpdate,
)
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}", tags=["seasonal-rates"])


@router.post(
    "/seasonal-rates",
    response_model=SeasonalRateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a seasonal rate",
)
async def create_seasonal_rate(
    body: SeasonalRateCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> SeasonalRate:
    """Create a seasonal rate with one or more inclusive date windows."""
    return await rule_store.create_rule(db, rule_store.SEASONAL_RATES, tenant, body.model_dump(), actor=actor)


@router.get(
    "/seasonal-rates",
    response_model=SeasonalRateListResponse,
    summary="List seasonal rates",
)
async def list_seasonal_rates(
    is_active: bool | None = Query(None, description="Filter by active flag"),
    site_class_id: uuid.UUID | None = Query(None, description="Filter by site class"),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await rule_store.list_rules(
        db, rule_store.SEASONAL_RATES, tenant, active=is_active, filters={"site_class_id": site_class_id}
    )
    return {"items": items, "total": total}


@router.get(
    "/seasonal-rates/{rate_id}",
    response_model=SeasonalRateResponse,
    summary="Get a seasonal rate",
)
async def get_seasonal_rate(
    rate_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> SeasonalRate:
    return await rule_store.get_rule(db, rule_store.SEASONAL_RATES, tenant, rate_id)


@router.patch(
    "/seasonal-rates/{rate_id}",
    response_model=SeasonalRateResponse,
    summary="Update a seasonal rate",
)
async def update_seasonal_rate(
    rate_id: uuid.UUID,
    body: SeasonalRateUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> SeasonalRate:
    """Partially update a seasonal rate. A ``windows`` list replaces every window."""
    return await rule_store.update_rule(
        db, rule_store.SEASONAL_RATES, tenant, rate_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put(
    "/seasonal-rates/{rate_id}/active",
    response_model=SeasonalRateResponse,
    summary="Activate or deactivate a seasonal rate",
)
async def set_seasonal_rate_active(
    rate_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> SeasonalRate:
    return await rule_store.set_active(
        db, rule_store.SEASONAL_RATES, tenant, rate_id, body.is_active, actor=actor
    )


@router.delete(
    "/seasonal-rates/{rate_id}",
    response_model=MessageResponse,
    summary="Delete a seasonal rate",
)
async def delete_seasonal_rate(
    rate_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await rule_store.delete_rule(db, rule_store.SEASONAL_RATES, tenant, rate_id, actor=actor)
    return MessageResponse(message="Seasonal rate deleted successfully")


@router.get(
    "/rate-groups",
    response_model=list[RateGroupResponse],
    summary="Seasonal rates as colored calendar groups",
)
async def list_rate_groups(
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    """Project every seasonal rate into a named, colored set of date ranges."""
    rates, _ = await rule_store.list_rules(db, rule_store.SEASONAL_RATES, tenant)
    return [
        {
            "id": rate.id,
            "name": rate.name,
            "color": rate.color,
            "rate_type": rate.rate_type,
            "amount": rate.amount,
            "display_amount": format_display(ValueKind.CURRENCY, rate.amount),
            "date_ranges": [{"start_date": w.start_date, "end_date": w.end_date} for w in rate.windows],
            "is_active": rate.is_active,
        }
        for rate in rates
    ]
