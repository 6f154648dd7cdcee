"""create_rule_tables

Revision ID: 3f9c1e7a2b4d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f9c1e7a2b4d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def _tenant_columns() -> list[sa.Column]:
    return [
        sa.Column("campground_id", sa.UUID(), sa.ForeignKey("campgrounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    ]


def upgrade() -> None:
    # Step 1: Tenants, site classes and sites
    op.create_table(
        "campgrounds",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("default_min_nights", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("default_max_nights", sa.Integer(), nullable=False, server_default="28"),
        *_timestamps(),
    )
    op.create_index("ix_campgrounds_slug", "campgrounds", ["slug"], unique=True)

    op.create_table(
        "site_classes",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("campground_id", sa.UUID(), sa.ForeignKey("campgrounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("default_rate_cents", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("campground_id", "name", name="uq_site_classes_campground_name"),
    )
    op.create_index("ix_site_classes_campground_id", "site_classes", ["campground_id"])

    op.create_table(
        "sites",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("campground_id", sa.UUID(), sa.ForeignKey("campgrounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("site_class_id", sa.UUID(), sa.ForeignKey("site_classes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("site_number", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("campground_id", "site_number", name="uq_sites_campground_number"),
    )
    op.create_index("ix_sites_campground_id", "sites", ["campground_id"])
    op.create_index("ix_sites_site_class_id", "sites", ["site_class_id"])

    # Step 2: Rule tables
    op.create_table(
        "tax_rules",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("rate", sa.Numeric(12, 2), nullable=True),
        sa.Column("min_nights", sa.Integer(), nullable=True),
        sa.Column("max_nights", sa.Integer(), nullable=True),
        sa.Column("requires_waiver", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("waiver_text", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "demand_bands",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("threshold_pct", sa.Integer(), nullable=False),
        sa.Column("adjustment_type", sa.String(20), nullable=False),
        sa.Column("adjustment_value", sa.Numeric(12, 4), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("stack_mode", sa.String(20), nullable=False, server_default="additive"),
        sa.Column("adjustment_type", sa.String(20), nullable=False),
        sa.Column("adjustment_value", sa.Numeric(12, 4), nullable=True),
        sa.Column("site_class_id", sa.UUID(), sa.ForeignKey("site_classes.id", ondelete="CASCADE"), nullable=True),
        sa.Column("dow_mask", sa.JSON(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("min_nights", sa.Integer(), nullable=True),
        sa.Column("min_rate_cap", sa.Integer(), nullable=True),
        sa.Column("max_rate_cap", sa.Integer(), nullable=True),
        sa.Column("demand_band_id", sa.UUID(), sa.ForeignKey("demand_bands.id", ondelete="SET NULL"), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_pricing_rules_priority", "pricing_rules", ["priority"])
    op.create_index("ix_pricing_rules_site_class_id", "pricing_rules", ["site_class_id"])

    op.create_table(
        "seasonal_rates",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("rate_type", sa.String(20), nullable=False, server_default="nightly"),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("min_nights", sa.Integer(), nullable=True),
        sa.Column("site_class_id", sa.UUID(), sa.ForeignKey("site_classes.id", ondelete="CASCADE"), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_seasonal_rates_site_class_id", "seasonal_rates", ["site_class_id"])

    op.create_table(
        "seasonal_rate_windows",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column(
            "seasonal_rate_id",
            sa.UUID(),
            sa.ForeignKey("seasonal_rates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
    )
    op.create_index("ix_seasonal_rate_windows_seasonal_rate_id", "seasonal_rate_windows", ["seasonal_rate_id"])

    op.create_table(
        "stay_rules",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("min_nights", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("max_nights", sa.Integer(), nullable=False, server_default="28"),
        sa.Column("site_classes", sa.JSON(), nullable=False),
        sa.Column("date_ranges", sa.JSON(), nullable=False),
        sa.Column("ignore_days_before", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "blackout_dates",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("site_id", sa.UUID(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=True),
        sa.Column("site_class_ids", sa.JSON(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default="other"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_blackout_dates_site_id", "blackout_dates", ["site_id"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.UUID(), primary_key=True),
        *_tenant_columns(),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("value", sa.Numeric(12, 2), nullable=False),
        sa.Column("valid_from", sa.Date(), nullable=True),
        sa.Column("valid_to", sa.Date(), nullable=True),
        sa.Column("usage_limit", sa.Integer(), nullable=True),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("campground_id", "code", name="uq_promotions_campground_code"),
    )

    for table in ("tax_rules", "demand_bands", "pricing_rules", "seasonal_rates", "stay_rules", "blackout_dates", "promotions"):
        op.create_index(f"ix_{table}_campground_id", table, ["campground_id"])

    # Step 3: Issued quotes, usage history and audit trail
    op.create_table(
        "quotes",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("campground_id", sa.UUID(), sa.ForeignKey("campgrounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("site_id", sa.UUID(), sa.ForeignKey("sites.id", ondelete="SET NULL"), nullable=True),
        sa.Column("site_class_id", sa.UUID(), sa.ForeignKey("site_classes.id", ondelete="SET NULL"), nullable=True),
        sa.Column("arrival_date", sa.Date(), nullable=False),
        sa.Column("departure_date", sa.Date(), nullable=False),
        sa.Column("nights", sa.Integer(), nullable=False),
        sa.Column("base_subtotal_cents", sa.Integer(), nullable=False),
        sa.Column("adjustments_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("demand_adjustment_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_before_tax_cents", sa.Integer(), nullable=False),
        sa.Column("discount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("taxes_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cents", sa.Integer(), nullable=False),
        sa.Column("promotion_code", sa.String(50), nullable=True),
        sa.Column("breakdown", sa.JSON(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_quotes_campground_id", "quotes", ["campground_id"])

    op.create_table(
        "quote_rule_usages",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("quote_id", sa.UUID(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rule_kind", sa.String(30), nullable=False),
        sa.Column("rule_id", sa.UUID(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_quote_rule_usages_quote_id", "quote_rule_usages", ["quote_id"])
    op.create_index("ix_quote_rule_usages_rule_id", "quote_rule_usages", ["rule_id"])

    op.create_table(
        "rule_audit_entries",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("campground_id", sa.UUID(), sa.ForeignKey("campgrounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rule_kind", sa.String(30), nullable=False),
        sa.Column("rule_id", sa.UUID(), nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("actor", sa.String(255), nullable=True),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("seq", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_rule_audit_entries_campground_id", "rule_audit_entries", ["campground_id"])
    op.create_index("ix_rule_audit_entries_rule_id", "rule_audit_entries", ["rule_id"])


def downgrade() -> None:
    for table in (
        "rule_audit_entries",
        "quote_rule_usages",
        "quotes",
        "promotions",
        "blackout_dates",
        "stay_rules",
        "seasonal_rate_windows",
        "seasonal_rates",
        "pricing_rules",
        "demand_bands",
        "tax_rules",
        "sites",
        "site_classes",
        "campgrounds",
    ):
        op.drop_table(table)
