"""Issued quote snapshot and the rules it used."""

import uuid
from datetime import date

from sqlalchemy import JSON, Date, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campreserv.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Quote(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Amounts frozen at stay-creation time; later rule edits never touch them."""

    __tablename__ = "quotes"

    campground_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("campgrounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    site_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sites.id", ondelete="SET NULL"), nullable=True)
    site_class_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("site_classes.id", ondelete="SET NULL"), nullable=True
    )
    arrival_date: Mapped[date] = mapped_column(Date, nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    nights: Mapped[int] = mapped_column(Integer, nullable=False)
    base_subtotal_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    adjustments_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    demand_adjustment_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_before_tax_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    taxes_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    promotion_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    breakdown: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    # Relationships
    rule_usages: Mapped[list["QuoteRuleUsage"]] = relationship(
        back_populates="quote", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, total_cents={self.total_cents})>"


class QuoteRuleUsage(UUIDPrimaryKeyMixin, Base):
    """Usage history: which rule contributed to an issued quote."""

    __tablename__ = "quote_rule_usages"

    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rule_kind: Mapped[str] = mapped_column(String(30), nullable=False)  # pricing_rule, tax_rule, promotion
    rule_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quote: Mapped["Quote"] = relationship(back_populates="rule_usages")
