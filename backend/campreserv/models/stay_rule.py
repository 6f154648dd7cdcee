"""Stay rule model: min/max night constraints."""

from sqlalchemy import JSON, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from campreserv.database import Base, CampgroundScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class StayRule(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """Restricts stay length for some site classes and dates."""

    __tablename__ = "stay_rules"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    min_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_nights: Mapped[int] = mapped_column(Integer, nullable=False, default=28)
    site_classes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # site class ids; empty = all
    date_ranges: Mapped[list] = mapped_column(JSON, nullable=False, default=list)  # [{"start": ..., "end": ...}]
    ignore_days_before: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<StayRule(id={self.id}, name={self.name!r}, nights={self.min_nights}..{self.max_nights})>"
