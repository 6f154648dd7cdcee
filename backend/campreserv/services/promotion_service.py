"""Promotion service: code lookup and atomic redemption."""

import logging

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.errors import ConstraintViolation, Violation
from campreserv.models.promotion import Promotion
from campreserv.rules.constraints import normalize_code
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)


async def find_by_code(db: AsyncSession, tenant: TenantContext, code: str) -> Promotion | None:
    """Look up a promotion of this campground by code, case-insensitively."""
    result = await db.execute(
        select(Promotion).where(
            Promotion.campground_id == tenant.campground_id,
            Promotion.code == normalize_code(code),
        )
    )
    return result.scalar_one_or_none()


async def redeem_promotion(db: AsyncSession, tenant: TenantContext, promotion: Promotion) -> Promotion:
    """Increment ``usage_count`` if the usage limit still allows it.

    The check and the increment are one conditional UPDATE, so two concurrent
    redemptions of the last remaining use cannot both succeed.
    """
    result = await db.execute(
        update(Promotion)
        .where(
            Promotion.id == promotion.id,
            Promotion.campground_id == tenant.campground_id,
            Promotion.is_active.is_(True),
            or_(Promotion.usage_limit.is_(None), Promotion.usage_count < Promotion.usage_limit),
        )
        .values(usage_count=Promotion.usage_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.info("Promotion %s not redeemed: usage limit reached", promotion.code)
        raise ConstraintViolation(
            Violation.PROMOTION_USAGE_LIMIT,
            f"Promo code {promotion.code} has reached its usage limit",
        )

    await db.refresh(promotion)
    logger.info("Redeemed promotion %s (%s/%s)", promotion.code, promotion.usage_count, promotion.usage_limit)
    return promotion
