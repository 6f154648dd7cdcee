"""Async engine, session dependency and the declarative pieces every rule table shares."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Integer, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from campreserv.config import settings

engine = create_async_engine(
    settings.async_database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for campgrounds, rule tables, quotes and the audit log."""


class UUIDPrimaryKeyMixin:
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)


class TimestampMixin:
    """created_at / updated_at, both filled by the database."""

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )


class CampgroundScopedMixin:
    """Tenant key plus the insertion sequence that breaks priority ties.

    Every rule row belongs to exactly one campground and goes with it on delete.
    """

    campground_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("campgrounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Assigned by the rule store at create time: max(sort_order) + 1 per campground
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Request-scoped session: committed when the handler returns, rolled back if it raises.

    Rule store writes only flush, so a rejected request leaves no partial rows.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
