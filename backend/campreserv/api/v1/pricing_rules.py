"""Pricing rules API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.pricing_rule import PricingRule
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.schemas.pricing_rule import (
    PricingRuleCreate,
    PricingRuleListResponse,
    PricingRuleResponse,
    PricingRuleUpdate,
)
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/pricing-rules", tags=["pricing-rules"])


@router.post(
    "",
    response_model=PricingRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a pricing rule",
)
async def create_pricing_rule(
    body: PricingRuleCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> PricingRule:
    """Create a pricing rule in canonical units.

    A rule is scoped by days of week or by a date window, never both. Demand
    rules may reference a demand band instead of carrying their own value.
    """
    return await rule_store.create_rule(db, rule_store.PRICING_RULES, tenant, body.model_dump(), actor=actor)


@router.get(
    "",
    response_model=PricingRuleListResponse,
    summary="List pricing rules in evaluation order",
)
async def list_pricing_rules(
    active: bool | None = Query(None, description="Filter by active flag"),
    type_filter: str | None = Query(None, alias="type", description="Filter by rule type"),
    site_class_id: uuid.UUID | None = Query(None, description="Filter by site class"),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Return the campground's pricing rules by priority, then creation order."""
    items, total = await rule_store.list_rules(
        db,
        rule_store.PRICING_RULES,
        tenant,
        active=active,
        filters={"type": type_filter, "site_class_id": site_class_id},
    )
    return {"items": items, "total": total}


@router.get(
    "/{rule_id}",
    response_model=PricingRuleResponse,
    summary="Get a pricing rule",
)
async def get_pricing_rule(
    rule_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> PricingRule:
    return await rule_store.get_rule(db, rule_store.PRICING_RULES, tenant, rule_id)


@router.patch(
    "/{rule_id}",
    response_model=PricingRuleResponse,
    summary="Update a pricing rule",
)
async def update_pricing_rule(
    rule_id: uuid.UUID,
    body: PricingRuleUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> PricingRule:
    return await rule_store.update_rule(
        db, rule_store.PRICING_RULES, tenant, rule_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put(
    "/{rule_id}/active",
    response_model=PricingRuleResponse,
    summary="Activate or deactivate a pricing rule",
)
async def set_pricing_rule_active(
    rule_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> PricingRule:
    return await rule_store.set_active(
        db, rule_store.PRICING_RULES, tenant, rule_id, body.is_active, actor=actor
    )


@router.delete(
    "/{rule_id}",
    response_model=MessageResponse,
    summary="Delete a pricing rule",
)
async def delete_pricing_rule(
    rule_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Hard-delete a pricing rule. Rules used by issued quotes must be deactivated instead."""
    await rule_store.delete_rule(db, rule_store.PRICING_RULES, tenant, rule_id, actor=actor)
    return MessageResponse(message="Pricing rule deleted successfully")
