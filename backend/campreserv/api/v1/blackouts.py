"""Blackout dates API router."""

from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.blackout import BlackoutDate
from campreserv.schemas.blackout import (
    BlackoutCreate,
    BlackoutListResponse,
    BlackoutResponse,
    BlackoutUpdate,
)
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/blackouts", tags=["blackouts"])


@router.post(
    "",
    response_model=BlackoutResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a blackout",
)
async def create_blackout(
    body: BlackoutCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> BlackoutDate:
    """Close a site, some site classes, or the whole park for an inclusive date range."""
    return await rule_store.create_rule(db, rule_store.BLACKOUTS, tenant, body.model_dump(), actor=actor)


@router.get(
    "",
    response_model=BlackoutListResponse,
    summary="List blackouts by start date",
)
async def list_blackouts(
    is_active: bool | None = Query(None, description="Filter by active flag"),
    category: str | None = Query(None, description="Filter by category"),
    status_filter: str | None = Query(
        None, alias="status", pattern="^(past|upcoming|active)$", description="Filter by derived status"
    ),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await rule_store.list_rules(
        db, rule_store.BLACKOUTS, tenant, active=is_active, filters={"category": category}
    )
    if status_filter is not None:
        today = date.today()
        items = [item for item in items if item.status_on(today) == status_filter]
        total = len(items)
    return {"items": items, "total": total}


@router.get(
    "/{blackout_id}",
    response_model=BlackoutResponse,
    summary="Get a blackout",
)
async def get_blackout(
    blackout_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> BlackoutDate:
    return await rule_store.get_rule(db, rule_store.BLACKOUTS, tenant, blackout_id)


@router.patch(
    "/{blackout_id}",
    response_model=BlackoutResponse,
    summary="Update a blackout",
)
async def update_blackout(
    blackout_id: uuid.UUID,
    body: BlackoutUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> BlackoutDate:
    return await rule_store.update_rule(
        db, rule_store.BLACKOUTS, tenant, blackout_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put(
    "/{blackout_id}/active",
    response_model=BlackoutResponse,
    summary="Activate or deactivate a blackout",
)
async def set_blackout_active(
    blackout_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> BlackoutDate:
    return await rule_store.set_active(db, rule_store.BLACKOUTS, tenant, blackout_id, body.is_active, actor=actor)


@router.delete(
    "/{blackout_id}",
    response_model=MessageResponse,
    summary="Delete a blackout",
)
async def delete_blackout(
    blackout_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await rule_store.delete_rule(db, rule_store.BLACKOUTS, tenant, blackout_id, actor=actor)
    return MessageResponse(message="Blackout deleted successfully")
