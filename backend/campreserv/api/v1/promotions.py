"""Promotions (promo codes) API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_actor, get_db, get_tenant
from campreserv.models.promotion import Promotion
from campreserv.schemas.common import ActiveToggle, MessageResponse
from campreserv.schemas.promotion import (
    PromotionCreate,
    PromotionListResponse,
    PromotionResponse,
    PromotionUpdate,
)
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/promotions", tags=["promotions"])


@router.post(
    "",
    response_model=PromotionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a promotion",
)
async def create_promotion(
    body: PromotionCreate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Promotion:
    """Create a promo code. Codes are upper-cased and unique per campground."""
    return await rule_store.create_rule(db, rule_store.PROMOTIONS, tenant, body.model_dump(), actor=actor)


@router.get(
    "",
    response_model=PromotionListResponse,
    summary="List promotions",
)
async def list_promotions(
    is_active: bool | None = Query(None, description="Filter by active flag"),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await rule_store.list_rules(db, rule_store.PROMOTIONS, tenant, active=is_active)
    return {"items": items, "total": total}


@router.get(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Get a promotion",
)
async def get_promotion(
    promotion_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> Promotion:
    return await rule_store.get_rule(db, rule_store.PROMOTIONS, tenant, promotion_id)


@router.patch(
    "/{promotion_id}",
    response_model=PromotionResponse,
    summary="Update a promotion",
)
async def update_promotion(
    promotion_id: uuid.UUID,
    body: PromotionUpdate,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Promotion:
    """Partially update a promotion. ``usage_count`` is only changed by redemption."""
    return await rule_store.update_rule(
        db, rule_store.PROMOTIONS, tenant, promotion_id, body.model_dump(exclude_unset=True), actor=actor
    )


@router.put(
    "/{promotion_id}/active",
    response_model=PromotionResponse,
    summary="Activate or deactivate a promotion",
)
async def set_promotion_active(
    promotion_id: uuid.UUID,
    body: ActiveToggle,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> Promotion:
    return await rule_store.set_active(
        db, rule_store.PROMOTIONS, tenant, promotion_id, body.is_active, actor=actor
    )


@router.delete(
    "/{promotion_id}",
    response_model=MessageResponse,
    summary="Delete a promotion",
)
async def delete_promotion(
    promotion_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    actor: str | None = Depends(get_actor),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Hard-delete a promotion that was never redeemed."""
    await rule_store.delete_rule(db, rule_store.PROMOTIONS, tenant, promotion_id, actor=actor)
    return MessageResponse(message="Promotion deleted successfully")
