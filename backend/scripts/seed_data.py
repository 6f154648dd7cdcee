"""Seed the database with a demo campground and a realistic rule set.

Rules are created through the rule store, so they pass the same validation as
API writes and show up in the audit trail with actor ``seed``.

Run from the backend directory:
    python -m scripts.seed_data
"""

import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

# Add backend to path so imports work when run as a script
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import delete, select

from campreserv.database import async_session_factory
from campreserv.models.campground import Campground, Site, SiteClass
from campreserv.services import rule_store
from campreserv.tenancy import TenantContext

# ---------------------------------------------------------------------------
# Seed data definitions
# ---------------------------------------------------------------------------

DEMO_CAMPGROUND = {
    "name": "Pine Hollow RV Resort",
    "slug": "pine-hollow",
    "description": "Lakeside RV resort with full-hookup pads, tent sites and rustic cabins.",
    "default_min_nights": 1,
    "default_max_nights": 28,
}

# name -> (default nightly rate in cents, site numbers)
SITE_CLASSES = {
    "RV Full Hookup": (5000, ["A1", "A2", "A3", "A4"]),
    "Tent": (2500, ["T1", "T2", "T3"]),
    "Cabin": (11000, ["C1", "C2"]),
}

ACTOR = "seed"


def _year() -> int:
    return date.today().year


async def seed() -> None:
    """Populate the database with a demo campground.

    Idempotent: an existing demo campground is deleted (with all its rules)
    and re-seeded.
    """
    async with async_session_factory() as session:
        result = await session.execute(select(Campground).where(Campground.slug == DEMO_CAMPGROUND["slug"]))
        existing = result.scalar_one_or_none()
        if existing is not None:
            print(f"⚠️  Campground '{existing.slug}' already exists. Deleting and re-seeding...")
            await session.execute(delete(Campground).where(Campground.id == existing.id))
            await session.flush()

        # ------------------------------------------------------------------
        # 1. Campground, site classes and sites
        # ------------------------------------------------------------------
        campground = Campground(**DEMO_CAMPGROUND)
        session.add(campground)
        await session.flush()
        tenant = TenantContext(campground.id)
        print(f"✅ Created campground: {campground.name} (id={campground.id})")

        classes: dict[str, SiteClass] = {}
        for name, (rate_cents, site_numbers) in SITE_CLASSES.items():
            site_class = SiteClass(campground_id=campground.id, name=name, default_rate_cents=rate_cents)
            session.add(site_class)
            await session.flush()
            classes[name] = site_class
            for number in site_numbers:
                session.add(Site(campground_id=campground.id, site_class_id=site_class.id, site_number=number))
            print(f"   🏕️  {name}: {len(site_numbers)} sites (${rate_cents / 100:.2f}/night)")
        await session.flush()

        rv = classes["RV Full Hookup"]
        year = _year()

        # ------------------------------------------------------------------
        # 2. Pricing rules and demand bands
        # ------------------------------------------------------------------
        band = await rule_store.create_rule(
            session,
            rule_store.DEMAND_BANDS,
            tenant,
            {"name": "High occupancy", "threshold_pct": 85, "adjustment_type": "percent",
             "adjustment_value": Decimal("0.15"), "active": True},
            actor=ACTOR,
        )
        pricing_rules = [
            {"name": "Weekend premium", "type": "weekend", "priority": 10, "stack_mode": "additive",
             "adjustment_type": "percent", "adjustment_value": Decimal("0.20"), "dow_mask": [5, 6]},
            {"name": "Peak summer", "type": "season", "priority": 20, "stack_mode": "additive",
             "adjustment_type": "percent", "adjustment_value": Decimal("0.25"),
             "start_date": date(year, 6, 15), "end_date": date(year, 8, 31), "max_rate_cap": 9000},
            {"name": "Weekly stay discount", "type": "season", "priority": 30, "stack_mode": "additive",
             "adjustment_type": "percent", "adjustment_value": Decimal("-0.10"), "min_nights": 7},
            {"name": "Lakefront surcharge", "type": "event", "priority": 40, "stack_mode": "additive",
             "adjustment_type": "flat", "adjustment_value": Decimal("500"), "site_class_id": rv.id},
            {"name": "Busy-night surge", "type": "demand", "priority": 50, "stack_mode": "additive",
             "adjustment_type": "percent", "demand_band_id": band.id},
        ]
        for data in pricing_rules:
            await rule_store.create_rule(session, rule_store.PRICING_RULES, tenant, data, actor=ACTOR)
        print(f"✅ Created {len(pricing_rules)} pricing rules and 1 demand band")

        # ------------------------------------------------------------------
        # 3. Seasonal rates
        # ------------------------------------------------------------------
        await rule_store.create_rule(
            session,
            rule_store.SEASONAL_RATES,
            tenant,
            {"name": "Summer RV", "color": "#f59e0b", "rate_type": "nightly", "amount": 6500,
             "site_class_id": rv.id, "is_active": True,
             "windows": [{"start_date": date(year, 6, 1), "end_date": date(year, 9, 7)}]},
            actor=ACTOR,
        )

        # ------------------------------------------------------------------
        # 4. Taxes, stay rules, blackouts and promotions
        # ------------------------------------------------------------------
        taxes = [
            {"name": "State lodging tax", "type": "percentage", "rate": Decimal("7.50"), "is_active": True},
            {"name": "County tourism fee", "type": "flat", "rate": Decimal("200"), "is_active": True},
            {"name": "Long-term resident exemption", "type": "exemption", "min_nights": 30,
             "requires_waiver": True, "waiver_text": "I certify this site is my primary residence.",
             "is_active": True},
        ]
        for data in taxes:
            await rule_store.create_rule(session, rule_store.TAX_RULES, tenant, data, actor=ACTOR)

        await rule_store.create_rule(
            session,
            rule_store.STAY_RULES,
            tenant,
            {"name": "Holiday weekend minimum", "min_nights": 3, "max_nights": 14,
             "site_classes": [str(rv.id)],
             "date_ranges": [{"start": date(year, 7, 3).isoformat(), "end": date(year, 7, 5).isoformat()}],
             "ignore_days_before": 3, "is_active": True},
            actor=ACTOR,
        )
        await rule_store.create_rule(
            session,
            rule_store.BLACKOUTS,
            tenant,
            {"start_date": date(year, 11, 1), "end_date": date(year, 11, 7), "reason": "Water system flush",
             "category": "maintenance", "site_class_ids": [], "is_active": True},
            actor=ACTOR,
        )
        await rule_store.create_rule(
            session,
            rule_store.PROMOTIONS,
            tenant,
            {"code": "SPRING20", "type": "percentage", "value": Decimal("20"),
             "valid_from": date(year, 3, 1), "valid_to": date(year, 5, 31), "usage_limit": 100,
             "description": "20% off spring stays", "is_active": True},
            actor=ACTOR,
        )

        await session.commit()

        print("✅ Created taxes, stay rules, blackouts and promotions")
        print()
        print("=" * 60)
        print("📊 Seed Summary")
        print("=" * 60)
        print(f"   Campground:    {campground.slug} ({campground.id})")
        print(f"   Site classes:  {len(classes)}")
        print(f"   Pricing rules: {len(pricing_rules)}")
        print(f"   Tax rules:     {len(taxes)}")
        print("=" * 60)
        print(f"🎉 Done! Try /api/v1/campgrounds/{campground.id}/pricing-rules")


if __name__ == "__main__":
    asyncio.run(seed())
