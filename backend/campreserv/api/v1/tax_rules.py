"""Tax rules API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.tax_rule import TaxRule
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.schemas.tax_rule import (
    TaxRuleCreate,
    TaxRuleListResponse,
    TaxRuleResponse,
    TaxRuleUpdate,
)
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/tax-rules", tags=["tax-rules"])


@router.post(
    "",
    response_model=TaxRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a tax rule",
)
async def create_tax_rule(
    body: TaxRuleCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> TaxRule:
    """Create a percentage, flat or exemption tax rule.

    Percentage and flat rules need a positive rate; exemptions never carry one.
    """
    return await rule_store.create_rule(db, rule_store.TAX_RULES, tenant, body.model_dump(), actor=actor)


@router.get(
    "",
    response_model=TaxRuleListResponse,
    summary="List tax rules",
)
async def list_tax_rules(
    is_active: bool | None = Query(None, description="Filter by active flag"),
    type_filter: str | None = Query(None, alias="type", description="Filter by tax type"),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await rule_store.list_rules(
        db, rule_store.TAX_RULES, tenant, active=is_active, filters={"type": type_filter}
    )
    return {"items": items, "total": total}


@router.get(
    "/{rule_id}",
    response_model=TaxRuleResponse,
    summary="Get a tax rule",
)
async def get_tax_rule(
    rule_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> TaxRule:
    return await rule_store.get_rule(db, rule_store.TAX_RULES, tenant, rule_id)


@router.patch(
    "/{rule_id}",
    response_model=TaxRuleResponse,
    summary="Update a tax rule",
)
async def update_tax_rule(
    rule_id: uuid.UUID,
    body: TaxRuleUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> TaxRule:
    """Partially update a tax rule. Switching to ``exemption`` without a rate clears the old rate."""
    return await rule_store.update_rule(
        db, rule_store.TAX_RULES, tenant, rule_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put(
    "/{rule_id}/active",
    response_model=TaxRuleResponse,
    summary="Activate or deactivate a tax rule",
)
async def set_tax_rule_active(
    rule_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> TaxRule:
    return await rule_store.set_active(db, rule_store.TAX_RULES, tenant, rule_id, body.is_active, actor=actor)


@router.delete(
    "/{rule_id}",
    response_model=MessageResponse,
    summary="Delete a tax rule",
)
async def delete_tax_rule(
    rule_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Hard-delete a tax rule. Rules used by issued quotes must be deactivated instead."""
    await rule_store.delete_rule(db, rule_store.TAX_RULES, tenant, rule_id, actor=actor)
    return MessageResponse(message="Tax rule deleted successfully")
