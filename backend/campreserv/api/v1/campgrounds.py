"""Campgrounds, site classes and sites API router.

A campground is the tenant: every rule route is nested under
``/campgrounds/{campground_id}``.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.api.deps import get_db, get_tenant
from campreserv.errors import ConflictError, NotFoundError, ValidationError
from campreserv.models.campground import Campground, Site, SiteClass
from campreserv.schemas.audit import RuleAuditListResponse
from campreserv.schemas.campground import (
    CampgroundCreate,
    CampgroundListResponse,
    CampgroundResponse,
    CampgroundUpdate,
    SiteClassCreate,
    SiteClassResponse,
    SiteCreate,
    SiteResponse,
)
from campreserv.services.audit_service import list_changes
from campreserv.tenancy import TenantContext

router = APIRouter(prefix="/api/v1/campgrounds", tags=["campgrounds"])


# ---------------------------------------------------------------------------
# Campgrounds
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=CampgroundResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a campground",
)
async def create_campground(
    body: CampgroundCreate,
    db: AsyncSession = Depends(get_db),
) -> Campground:
    """Create a campground. Slugs are globally unique."""
    existing = await db.execute(select(Campground.id).where(Campground.slug == body.slug))
    if existing.first() is not None:
        raise ConflictError(f"Campground slug {body.slug!r} already exists", field="slug")

    campground = Campground(**body.model_dump())
    db.add(campground)
    await db.flush()
    await db.refresh(campground)
    return campground


@router.get(
    "",
    response_model=CampgroundListResponse,
    summary="List campgrounds",
)
async def list_campgrounds(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> dict:
    total = (await db.execute(select(func.count()).select_from(Campground))).scalar_one()
    result = await db.execute(select(Campground).order_by(Campground.name).offset(skip).limit(limit))
    return {"items": list(result.scalars().all()), "total": total}


@router.get(
    "/{campground_id}",
    response_model=CampgroundResponse,
    summary="Get a campground",
)
async def get_campground(
    campground_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> Campground:
    campground = await db.get(Campground, campground_id)
    if campground is None:
        raise NotFoundError("Campground not found")
    return campground


@router.patch(
    "/{campground_id}",
    response_model=CampgroundResponse,
    summary="Update a campground",
)
async def update_campground(
    body: CampgroundUpdate,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> Campground:
    """Partially update a campground, including its default stay bounds."""
    campground = await db.get(Campground, tenant.campground_id)
    update_data = body.model_dump(exclude_unset=True)

    min_nights = update_data.get("default_min_nights", campground.default_min_nights)
    max_nights = update_data.get("default_max_nights", campground.default_max_nights)
    if min_nights > max_nights:
        raise ValidationError("Minimum nights cannot exceed maximum nights", field="default_max_nights")

    for field, value in update_data.items():
        setattr(campground, field, value)

    await db.flush()
    await db.refresh(campground)
    return campground


# ---------------------------------------------------------------------------
# Site classes and sites
# ---------------------------------------------------------------------------


@router.post(
    "/{campground_id}/site-classes",
    response_model=SiteClassResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a site class",
)
async def create_site_class(
    body: SiteClassCreate,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> SiteClass:
    existing = await db.execute(
        select(SiteClass.id).where(SiteClass.campground_id == tenant.campground_id, SiteClass.name == body.name)
    )
    if existing.first() is not None:
        raise ConflictError(f"Site class {body.name!r} already exists", field="name")

    site_class = SiteClass(campground_id=tenant.campground_id, **body.model_dump())
    db.add(site_class)
    await db.flush()
    await db.refresh(site_class)
    return site_class


@router.get(
    "/{campground_id}/site-classes",
    response_model=list[SiteClassResponse],
    summary="List site classes",
)
async def list_site_classes(
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[SiteClass]:
    result = await db.execute(
        select(SiteClass).where(SiteClass.campground_id == tenant.campground_id).order_by(SiteClass.name)
    )
    return list(result.scalars().all())


@router.post(
    "/{campground_id}/sites",
    response_model=SiteResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a site",
)
async def create_site(
    body: SiteCreate,
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> Site:
    """Create a site in one of this campground's site classes."""
    site_class = await db.get(SiteClass, body.site_class_id)
    if site_class is None or not tenant.owns(site_class):
        raise ValidationError("Unknown site class", field="site_class_id")

    existing = await db.execute(
        select(Site.id).where(Site.campground_id == tenant.campground_id, Site.site_number == body.site_number)
    )
    if existing.first() is not None:
        raise ConflictError(f"Site {body.site_number!r} already exists", field="site_number")

    site = Site(campground_id=tenant.campground_id, **body.model_dump())
    db.add(site)
    await db.flush()
    await db.refresh(site)
    return site


@router.get(
    "/{campground_id}/sites",
    response_model=list[SiteResponse],
    summary="List sites",
)
async def list_sites(
    site_class_id: uuid.UUID | None = Query(None, description="Filter by site class"),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> list[Site]:
    query = select(Site).where(Site.campground_id == tenant.campground_id)
    if site_class_id is not None:
        query = query.where(Site.site_class_id == site_class_id)
    result = await db.execute(query.order_by(Site.site_number))
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------


@router.get(
    "/{campground_id}/audit",
    response_model=RuleAuditListResponse,
    summary="List rule changes, newest first",
)
async def list_audit_entries(
    rule_kind: str | None = Query(None, description="Filter by rule kind, e.g. pricing_rule"),
    rule_id: uuid.UUID | None = Query(None, description="Filter by rule id"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    tenant: TenantContext = Depends(get_tenant),
    db: AsyncSession = Depends(get_db),
) -> dict:
    items, total = await list_changes(db, tenant, rule_kind=rule_kind, rule_id=rule_id, skip=skip, limit=limit)
    return {"items": items, "total": total}
