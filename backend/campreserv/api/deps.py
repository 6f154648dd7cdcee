"""Shared API dependencies, the single import point for all routers.

Re-exports the database session dependency and resolves the tenant and actor
of each request::

    from campreserv.api.deps import get_actor, get_db, get_tenant
"""

import uuid

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.database import get_db
from campreserv.errors import NotFoundError
from campreserv.models.campground import Campground
from campreserv.tenancy import TenantContext


async def get_tenant(campground_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> TenantContext:
    """Resolve the ``{campground_id}`` path segment into a tenant context."""
    campground = await db.get(Campground, campground_id)
    if campground is None:
        raise NotFoundError("Campground not found")
    return TenantContext(campground.id)


async def get_actor(x_actor: str | None = Header(None, max_length=255)) -> str | None:
    """Who made the change, for the audit trail. Optional."""
    if x_actor is None:
        return None
    return x_actor.strip() or None


__all__ = [
    "get_db",
    "get_tenant",
    "get_actor",
]
