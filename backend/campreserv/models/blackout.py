"""Blackout date / site closure model."""

import uuid
from datetime import date

from sqlalchemy import JSON, Boolean, Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campreserv.database import Base, CampgroundScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class BlackoutDate(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """Dates during which a site, some site classes, or the whole park is unbookable."""

    __tablename__ = "blackout_dates"

    site_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("sites.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    site_class_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)  # inclusive
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="other")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    @property
    def is_park_wide(self) -> bool:
        return self.site_id is None and not self.site_class_ids

    @property
    def status(self) -> str:
        return self.status_on(date.today())

    def status_on(self, today: date) -> str:
        """Derived status: ``past``, ``upcoming`` or ``active``."""
        if self.end_date < today:
            return "past"
        if self.start_date > today:
            return "upcoming"
        return "active"

    def __repr__(self) -> str:
        return f"<BlackoutDate(id={self.id}, {self.start_date}..{self.end_date})>"
