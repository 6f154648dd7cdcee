"""Campground (tenant), site classes, and sites."""

import uuid

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campreserv.config import settings
from campreserv.database import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Campground(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One customer property. Every rule row is scoped to exactly one campground."""

    __tablename__ = "campgrounds"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    default_min_nights: Mapped[int] = mapped_column(Integer, default=lambda: settings.default_min_nights)
    default_max_nights: Mapped[int] = mapped_column(Integer, default=lambda: settings.default_max_nights)

    # Relationships
    site_classes: Mapped[list["SiteClass"]] = relationship(
        back_populates="campground", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Campground(id={self.id}, slug={self.slug!r})>"


class SiteClass(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A bookable category of sites (RV full hookup, tent, cabin...)."""

    __tablename__ = "site_classes"

    campground_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("campgrounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    default_rate_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    campground: Mapped["Campground"] = relationship(back_populates="site_classes", lazy="selectin")
    sites: Mapped[list["Site"]] = relationship(
        back_populates="site_class", lazy="selectin", cascade="all, delete-orphan"
    )

    __table_args__ = (UniqueConstraint("campground_id", "name", name="uq_site_classes_campground_name"),)

    def __repr__(self) -> str:
        return f"<SiteClass(id={self.id}, name={self.name!r})>"


class Site(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A single pitch / pad / cabin."""

    __tablename__ = "sites"

    campground_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("campgrounds.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    site_class_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("site_classes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    site_number: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), default=None)

    # Relationships
    site_class: Mapped["SiteClass"] = relationship(back_populates="sites", lazy="selectin")

    __table_args__ = (UniqueConstraint("campground_id", "site_number", name="uq_sites_campground_number"),)

    def __repr__(self) -> str:
        return f"<Site(id={self.id}, site_number={self.site_number!r})>"
