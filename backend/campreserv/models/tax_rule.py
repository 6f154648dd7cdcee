"""Tax rule model: percentage, flat and exemption rules."""

from decimal import Decimal

from sqlalchemy import Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campreserv.database import Base, CampgroundScopedMixin, TimestampMixin, UUIDPrimaryKeyMixin


class TaxRule(UUIDPrimaryKeyMixin, CampgroundScopedMixin, TimestampMixin, Base):
    """A tax applied to stays, or an exemption from all taxes."""

    __tablename__ = "tax_rules"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # percentage, flat, exemption
    # percentage: whole-number percent (7.5 == 7.5%); flat: integer cents; exemption: NULL
    rate: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    min_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_nights: Mapped[int | None] = mapped_column(Integer, nullable=True)
    requires_waiver: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    waiver_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<TaxRule(id={self.id}, name={self.name!r}, type={self.type!r}, rate={self.rate})>"
