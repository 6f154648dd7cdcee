"""Demand bands API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.pricing_rule import DemandBand
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.schemas.pricing_rule import DemandBandCreate, DemandBandResponse, DemandBandUpdate
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/demand-bands", tags=["demand-bands"])


@router.post(
    "",
    response_model=DemandBandResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a demand band",
)
async def create_demand_band(
    body: DemandBandCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> DemandBand:
    return await rule_store.create_rule(db, rule_store.DEMAND_BANDS, tenant, body.model_dump(), actor=actor)


@router.get(
    "",
    response_model=list[DemandBandResponse],
    summary="List demand bands by threshold",
)
async def list_demand_bands(
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[DemandBand]:
    items, _ = await rule_store.list_rules(db, rule_store.DEMAND_BANDS, tenant)
    return items


@router.get("/{band_id}", response_model=DemandBandResponse, summary="Get a demand band")
async def get_demand_band(
    band_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> DemandBand:
    return await rule_store.get_rule(db, rule_store.DEMAND_BANDS, tenant, band_id)


@router.patch("/{band_id}", response_model=DemandBandResponse, summary="Update a demand band")
async def update_demand_band(
    band_id: uuid.UUID,
    body: DemandBandUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> DemandBand:
    return await rule_store.update_rule(
        db, rule_store.DEMAND_BANDS, tenant, band_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put("/{band_id}/active", response_model=DemandBandResponse, summary="Activate or deactivate a demand band")
async def set_demand_band_active(
    band_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> DemandBand:
    return await rule_store.set_active(db, rule_store.DEMAND_BANDS, tenant, band_id, body.is_active, actor=actor)


@router.delete("/{band_id}", response_model=MessageResponse, summary="Delete a demand band")
async def delete_demand_band(
    band_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a band no pricing rule references."""
    await rule_store.delete_rule(db, rule_store.DEMAND_BANDS, tenant, band_id, actor=actor)
    return MessageResponse(message="Demand band deleted successfully")
