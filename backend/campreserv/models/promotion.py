"""Promotion (promo code) model."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Boolean, Date, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from campreserv.database import Base, CampgroundScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class Promotion(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """A discount redeemable with a code."""

    __tablename__ = "promotions"

    code: Mapped[str] = mapped_column(String(50), nullable=False)  # upper-cased
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # percentage, flat
    value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)  # percent 0-100 or cents
    valid_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    valid_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("campground_id", "code", name="uq_promotions_campground_code"),)

    def __repr__(self) -> str:
        return f"<Promotion(id={self.id}, code={self.code!r}, usage={self.usage_count}/{self.usage_limit})>"
