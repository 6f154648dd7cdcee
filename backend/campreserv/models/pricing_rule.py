"""Pricing rule (v2) and demand band models."""

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import JSON, Boolean, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campreserv.database import Base, CampgroundScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class DemandBand(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """An occupancy threshold that triggers a surge (or slump) adjustment."""

    __tablename__ = "demand_bands"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    threshold_pct: Mapped[int] = mapped_column(Integer, nullable=False)  # 0-100
    adjustment_type: Mapped[str] = mapped_column(String(20), nullable=False)  # percent, flat
    adjustment_value: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<DemandBand(id={self.id}, threshold_pct={self.threshold_pct})>"


class PricingRule(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """A composable nightly rate adjustment."""

    __tablename__ = "pricing_rules"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # season, weekend, holiday, event, demand
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=10, index=True)
    stack_mode: Mapped[str] = mapped_column(String(20), nullable=False, default="additive")  # additive, max, override
    adjustment_type: Mapped[str] = mapped_column(String(20), nullable=False)  # percent, flat
    # percent: signed fraction (0.10 == +10%); flat: signed integer cents
    adjustment_value: Mapped[Decimal | None] = mapped_column(Numeric(12, 4), nullable=True)
    site_class_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("site_classes.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    dow_mask: Mapped[list | None] = mapped_column(JSON, nullable=True)  # weekdays, 0 = Sunday
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_rate_cap: Mapped[int | None] = mapped_column(Integer, nullable=True)  # cents
    max_rate_cap: Mapped[int | None] = mapped_column(Integer, nullable=True)  # cents
    demand_band_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("demand_bands.id", ondelete="SET NULL"),
        nullable=True,
    )
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    demand_band: Mapped["DemandBand | None"] = relationship(lazy="selectin")

    def __repr__(self) -> str:
        return (
            f"<PricingRule(id={self.id}, name={self.name!r}, priority={self.priority}, "
            f"stack_mode={self.stack_mode!r})>"
        )
