"""Audit service: record and list rule changes."""

import logging
import uuid
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.models.audit import RuleAuditEntry
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)


async def record_change(
    db: AsyncSession,
    tenant: TenantContext,
    *,
    rule_kind: str,
    rule_id: uuid.UUID,
    action: str,
    actor: str | None,
    changes: dict[str, Any] | None = None,
) -> RuleAuditEntry:
    """Append an audit entry in the caller's transaction."""
    last = await db.execute(
        select(func.coalesce(func.max(RuleAuditEntry.seq), 0)).where(
            RuleAuditEntry.campground_id == tenant.campground_id
        )
    )
    entry = RuleAuditEntry(
        seq=last.scalar_one() + 1,
        campground_id=tenant.campground_id,
        rule_kind=rule_kind,
        rule_id=rule_id,
        action=action,
        actor=actor,
        changes=jsonable_encoder(changes or {}),
    )
    db.add(entry)
    await db.flush()
    logger.info(
        "%s %s %s in campground %s by %s",
        action,
        rule_kind,
        rule_id,
        tenant.campground_id,
        actor or "anonymous",
    )
    return entry


async def list_changes(
    db: AsyncSession,
    tenant: TenantContext,
    *,
    rule_kind: str | None = None,
    rule_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[RuleAuditEntry], int]:
    """Newest first."""
    query = select(RuleAuditEntry).where(RuleAuditEntry.campground_id == tenant.campground_id)
    count_query = (
        select(func.count())
        .select_from(RuleAuditEntry)
        .where(RuleAuditEntry.campground_id == tenant.campground_id)
    )
    if rule_kind is not None:
        query = query.where(RuleAuditEntry.rule_kind == rule_kind)
        count_query = count_query.where(RuleAuditEntry.rule_kind == rule_kind)
    if rule_id is not None:
        query = query.where(RuleAuditEntry.rule_id == rule_id)
        count_query = count_query.where(RuleAuditEntry.rule_id == rule_id)

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(query.order_by(RuleAuditEntry.seq.desc()).offset(skip).limit(limit))
    return list(result.scalars().all()), total
