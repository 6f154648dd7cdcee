"""Quotes API router: preview (read-only) and issue (persisted)."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_db, get_tenant
from campreserv.models.quote import Quote
from campreserv.schemas.quote import (
    IssuedQuoteListResponse,
    IssuedQuoteResponse,
    QuoteDecisionResponse,
    QuoteRequest,
)
from campreserv.services import quote_service
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds/{campground_id}/quotes", tags=["quotes"])


@router.post(
    "/preview",
    response_model=QuoteDecisionResponse,
    summary="Admit or reject a stay and price it, without writing anything",
)
async def preview_quote(
    body: QuoteRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Run the constraint checks and the pricing evaluation.

    A rejected stay is still a 200: the body names the violated constraint.
    """
    return await quote_service.preview_quote(db, tenant, body)


@router.post(
    "",
    response_model=IssuedQuoteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue a quote",
)
async def issue_quote(
    body: QuoteRequest,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> Quote:
    """Check, price, redeem the promotion and persist the quote.

    A rejected stay returns 409 with the violated constraint.
    """
    return await quote_service.issue_quote(db, tenant, body)


@router.get(
    "",
    response_model=IssuedQuoteListResponse,
    summary="List issued quotes, newest first",
)
async def list_quotes(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await quote_service.list_quotes(db, tenant, skip=skip, limit=limit)
    return {"items": items, "total": total}


@router.get(
    "/{quote_id}",
    response_model=IssuedQuoteResponse,
    summary="Get an issued quote",
)
async def get_quote(
    quote_id: uuid.UUID,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> Quote:
    return await quote_service.get_quote(db, tenant, quote_id)
