"""Stay rules (minimum / maximum nights) API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.stay_rule import StayRule
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.schemas.stay_rule import (
    StayRuleCreate,
    StayRuleListResponse,
    StayRuleResponse,
    StayRuleUpdate,
)
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/stay-rules", tags=["stay-rules"])


@router.post(
    "",
    response_model=StayRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a stay rule",
)
async def create_stay_rule(
    body: StayRuleCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> StayRule:
    """Create a stay rule. ``min_nights`` may not exceed ``max_nights``."""
    return await rule_store.create_rule(db, rule_store.STAY_RULES, tenant, body.model_dump(), actor=actor)


@router.get(
    "",
    response_model=StayRuleListResponse,
    summary="List stay rules",
)
async def list_stay_rules(
    is_active: bool | None = Query(None, description="Filter by active flag"),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await rule_store.list_rules(db, rule_store.STAY_RULES, tenant, active=is_active)
    return {"items": items, "total": total}


@router.get(
    "/{rule_id}",
    response_model=StayRuleResponse,
    summary="Get a stay rule",
)
async def get_stay_rule(
    rule_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> StayRule:
    return await rule_store.get_rule(db, rule_store.STAY_RULES, tenant, rule_id)


@router.patch(
    "/{rule_id}",
    response_model=StayRuleResponse,
    summary="Update a stay rule",
)
async def update_stay_rule(
    rule_id: uuid.UUID,
    body: StayRuleUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> StayRule:
    """Partially update a stay rule; the merged rule must keep min <= max."""
    return await rule_store.update_rule(
        db, rule_store.STAY_RULES, tenant, rule_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put(
    "/{rule_id}/active",
    response_model=StayRuleResponse,
    summary="Activate or deactivate a stay rule",
)
async def set_stay_rule_active(
    rule_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> StayRule:
    return await rule_store.set_active(db, rule_store.STAY_RULES, tenant, rule_id, body.is_active, actor=actor)


@router.delete(
    "/{rule_id}",
    response_model=MessageResponse,
    summary="Delete a stay rule",
)
async def delete_stay_rule(
    rule_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    await rule_store.delete_rule(db, rule_store.STAY_RULES, tenant, rule_id, actor=actor)
    return MessageResponse(message="Stay rule deleted successfully")
