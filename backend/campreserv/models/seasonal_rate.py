"""Seasonal rate model and its date windows (rendered as rate groups)."""

import uuid
from datetime import date

from sqlalchemy import Boolean, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campreserv.database import Base, CampgroundScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class SeasonalRate(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """A base rate that holds for one or more date windows."""

    __tablename__ = "seasonal_rates"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)  # presentation only
    rate_type: Mapped[str] = mapped_column(String(20), nullable=False, default="nightly")
    amount: Mapped[int] = mapped_column(Integer, nullable=False)  # cents
    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    site_class_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("site_classes.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    windows: Mapped[list["SeasonalRateWindow"]] = relationship(
        back_populates="seasonal_rate",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="SeasonalRateWindow.start_date",
    )

    def __repr__(self) -> str:
        return f"<SeasonalRate(id={self.id}, name={self.name!r}, amount={self.amount})>"


class SeasonalRateWindow(UUIDPrimaryKeyMixin, Base):
    """An inclusive [start_date, end_date] window of a seasonal rate."""

    __tablename__ = "seasonal_rate_windows"

    seasonal_rate_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("seasonal_rates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    seasonal_rate: Mapped["SeasonalRate"] = relationship(back_populates="windows")

    def __repr__(self) -> str:
        return f"<SeasonalRateWindow({self.start_date}..{self.end_date})>"
