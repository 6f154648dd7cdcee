"""Tests for quote preview and issue endpoints.

Stays are placed two months out so promotions validated against today and
the default lead time are stable.
"""

import uuid
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

ARRIVAL = date.today() + timedelta(days=60)


def _stay(nights: int = 3, **fields) -> dict:
    return {
        "arrival_date": ARRIVAL.isoformat(),
        "departure_date": (ARRIVAL + timedelta(days=nights)).isoformat(),
        **fields,
    }


async def _preview(client: AsyncClient, campground_base: str, body: dict) -> dict:
    response = await client.post(f"{campground_base}/quotes/preview", json=body)
    assert response.status_code == 200, f"Preview failed: {response.text}"
    return response.json()


async def _issue(client: AsyncClient, campground_base: str, body: dict) -> dict:
    response = await client.post(f"{campground_base}/quotes", json=body)
    assert response.status_code == 201, f"Failed to issue quote: {response.text}"
    return response.json()


async def _post(client: AsyncClient, url: str, payload: dict) -> dict:
    response = await client.post(url, json=payload)
    assert response.status_code == 201, f"Failed to create {url}: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def ten_percent(client: AsyncClient, campground_base: str) -> dict:
    return await _post(
        client,
        f"{campground_base}/pricing-rules",
        {"name": "Peak season", "adjustment_type": "percent", "adjustment_value": "0.10"},
    )


@pytest_asyncio.fixture
async def lodging_tax(client: AsyncClient, campground_base: str) -> dict:
    return await _post(
        client, f"{campground_base}/tax-rules", {"name": "Lodging tax", "type": "percentage", "rate": "10"}
    )


@pytest_asyncio.fixture
async def single_use_promo(client: AsyncClient, campground_base: str) -> dict:
    return await _post(
        client,
        f"{campground_base}/promotions",
        {"code": "FALL10", "type": "percentage", "value": "10", "usage_limit": 1},
    )


# ---------------------------------------------------------------------------
# Preview: pricing
# ---------------------------------------------------------------------------


class TestPreviewPricing:
    """Preview prices an admitted stay without writing anything."""

    async def test_base_rate_only(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        data = await _preview(client, campground_base, _stay(site_id=rv_site["id"]))
        assert data["admitted"] is True
        quote = data["quote"]
        assert quote["nights"] == 3
        assert quote["base_subtotal_cents"] == 15000
        assert quote["adjustments_cents"] == 0
        assert quote["total_before_tax_cents"] == 15000
        assert quote["effective_nightly_rate_cents"] == 5000
        assert quote["taxes_cents"] == 0
        assert quote["total_cents"] == 15000
        assert quote["min_nights"] == 1
        assert quote["max_nights"] == 28
        assert quote["applied_rules"] == []
        assert len(quote["nightly"]) == 3

    async def test_percent_rule(
        self, client: AsyncClient, campground_base: str, rv_site: dict, ten_percent: dict
    ) -> None:
        quote = (await _preview(client, campground_base, _stay(site_id=rv_site["id"])))["quote"]
        assert quote["adjustments_cents"] == 1500
        assert quote["total_before_tax_cents"] == 16500
        assert quote["applied_rules"] == [
            {"rule_id": ten_percent["id"], "name": "Peak season", "stack_mode": "additive", "adjustment_cents": 1500}
        ]

    async def test_explicit_base_rate(
        self, client: AsyncClient, campground_base: str, rv_class: dict, ten_percent: dict
    ) -> None:
        quote = (
            await _preview(client, campground_base, _stay(site_class_id=rv_class["id"], base_rate_cents=8000))
        )["quote"]
        assert quote["base_subtotal_cents"] == 24000
        assert quote["total_before_tax_cents"] == 26400

    async def test_max_cap(self, client: AsyncClient, campground_base: str, rv_class: dict) -> None:
        await _post(
            client,
            f"{campground_base}/pricing-rules",
            {"name": "Festival", "adjustment_value": "0.40", "max_rate_cap": 6000},
        )
        quote = (await _preview(client, campground_base, _stay(site_class_id=rv_class["id"])))["quote"]
        assert quote["total_before_tax_cents"] == 18000
        assert quote["capped_at"] == "max"
        assert {night["rate_cents"] for night in quote["nightly"]} == {6000}

    async def test_rule_scoped_to_other_class_ignored(
        self, client: AsyncClient, campground_base: str, rv_class: dict, tent_class: dict
    ) -> None:
        await _post(
            client,
            f"{campground_base}/pricing-rules",
            {"name": "Tent surcharge", "adjustment_value": "0.50", "site_class_id": tent_class["id"]},
        )
        quote = (await _preview(client, campground_base, _stay(site_class_id=rv_class["id"])))["quote"]
        assert quote["total_before_tax_cents"] == 15000

    async def test_demand_band_above_threshold(
        self, client: AsyncClient, campground_base: str, rv_class: dict
    ) -> None:
        band = await _post(
            client,
            f"{campground_base}/demand-bands",
            {"name": "Busy", "threshold_pct": 80, "adjustment_value": "0.15"},
        )
        await _post(
            client,
            f"{campground_base}/pricing-rules",
            {"name": "Surge", "type": "demand", "adjustment_value": None, "demand_band_id": band["id"]},
        )

        busy = (
            await _preview(client, campground_base, _stay(site_class_id=rv_class["id"], occupancy_fraction=0.85))
        )["quote"]
        assert busy["demand_adjustment_cents"] == 2250
        assert busy["adjustments_cents"] == 0
        assert busy["total_before_tax_cents"] == 17250

        quiet = (
            await _preview(client, campground_base, _stay(site_class_id=rv_class["id"], occupancy_fraction=0.5))
        )["quote"]
        assert quiet["demand_adjustment_cents"] == 0
        assert quiet["total_before_tax_cents"] == 15000

    async def test_seasonal_base_rate(self, client: AsyncClient, campground_base: str, rv_class: dict) -> None:
        window = {"start_date": ARRIVAL.isoformat(), "end_date": (ARRIVAL + timedelta(days=10)).isoformat()}
        await _post(
            client,
            f"{campground_base}/seasonal-rates",
            {"name": "Park-wide summer", "amount": 9000, "windows": [window]},
        )
        await _post(
            client,
            f"{campground_base}/seasonal-rates",
            {"name": "RV summer", "amount": 7000, "site_class_id": rv_class["id"], "windows": [window]},
        )

        quote = (await _preview(client, campground_base, _stay(site_class_id=rv_class["id"])))["quote"]
        assert quote["base_subtotal_cents"] == 21000


# ---------------------------------------------------------------------------
# Preview: admission
# ---------------------------------------------------------------------------


class TestPreviewAdmission:
    """Blackouts, stay length and promotion validity reject a stay."""

    async def test_blackout_rejects(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        middle = (ARRIVAL + timedelta(days=1)).isoformat()
        await _post(
            client,
            f"{campground_base}/blackouts",
            {"start_date": middle, "end_date": middle, "reason": "Water main repair"},
        )

        data = await _preview(client, campground_base, _stay(site_id=rv_site["id"]))
        assert data["admitted"] is False
        assert data["violation"] == "blackout"
        assert "Water main repair" in data["message"]
        assert data["quote"] is None

    async def test_blackout_on_departure_day_is_free(
        self, client: AsyncClient, campground_base: str, rv_site: dict
    ) -> None:
        departure = (ARRIVAL + timedelta(days=3)).isoformat()
        await _post(client, f"{campground_base}/blackouts", {"start_date": departure, "end_date": departure})

        data = await _preview(client, campground_base, _stay(site_id=rv_site["id"]))
        assert data["admitted"] is True

    async def test_blackout_for_other_site_ignored(
        self, client: AsyncClient, campground_base: str, rv_site: dict, rv_class: dict
    ) -> None:
        other = await _post(client, f"{campground_base}/sites", {"site_class_id": rv_class["id"], "site_number": "A2"})
        await _post(
            client,
            f"{campground_base}/blackouts",
            {"start_date": ARRIVAL.isoformat(), "end_date": ARRIVAL.isoformat(), "site_id": other["id"]},
        )

        data = await _preview(client, campground_base, _stay(site_id=rv_site["id"]))
        assert data["admitted"] is True

    async def test_stay_rule_bypassed_close_to_arrival(
        self, client: AsyncClient, campground_base: str, rv_site: dict, rv_class: dict
    ) -> None:
        """RV minimum of 7 nights, waived within 14 days of arrival."""
        await _post(
            client,
            f"{campground_base}/stay-rules",
            {
                "name": "RV weekly minimum",
                "min_nights": 7,
                "max_nights": 21,
                "site_classes": [rv_class["id"]],
                "ignore_days_before": 14,
            },
        )

        far = await _preview(client, campground_base, _stay(site_id=rv_site["id"], lead_time_days=20))
        assert far["admitted"] is False
        assert far["violation"] == "min_nights"

        near = await _preview(client, campground_base, _stay(site_id=rv_site["id"], lead_time_days=5))
        assert near["admitted"] is True
        assert near["quote"]["min_nights"] == 1

        # Default lead time is the days until arrival
        default = await _preview(client, campground_base, _stay(site_id=rv_site["id"]))
        assert default["violation"] == "min_nights"

    async def test_campground_maximum(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        data = await _preview(client, campground_base, _stay(nights=30, site_id=rv_site["id"]))
        assert data["violation"] == "max_nights"

    async def test_unknown_promo_code(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        data = await _preview(client, campground_base, _stay(site_id=rv_site["id"], promo_code="NOPE"))
        assert data["admitted"] is False
        assert data["violation"] == "promotion_unknown"

    async def test_blackout_checked_before_promotion(
        self, client: AsyncClient, campground_base: str, rv_site: dict
    ) -> None:
        await _post(
            client,
            f"{campground_base}/blackouts",
            {"start_date": ARRIVAL.isoformat(), "end_date": ARRIVAL.isoformat()},
        )
        data = await _preview(client, campground_base, _stay(site_id=rv_site["id"], promo_code="NOPE"))
        assert data["violation"] == "blackout"

    async def test_preview_does_not_redeem(
        self, client: AsyncClient, campground_base: str, rv_site: dict, single_use_promo: dict
    ) -> None:
        for _ in range(2):
            data = await _preview(client, campground_base, _stay(site_id=rv_site["id"], promo_code="fall10"))
            assert data["admitted"] is True
            assert data["quote"]["discount_cents"] == 1500

        promo = await client.get(f"{campground_base}/promotions/{single_use_promo['id']}")
        assert promo.json()["usage_count"] == 0


# ---------------------------------------------------------------------------
# Preview: taxes
# ---------------------------------------------------------------------------


class TestPreviewTaxes:
    """Taxes apply to the discounted subtotal; exemptions may need a waiver."""

    async def test_tax_after_discount(
        self, client: AsyncClient, campground_base: str, rv_site: dict, lodging_tax: dict, single_use_promo: dict
    ) -> None:
        quote = (await _preview(client, campground_base, _stay(site_id=rv_site["id"], promo_code="FALL10")))["quote"]
        assert quote["discount_cents"] == 1500
        assert quote["promotion_code"] == "FALL10"
        assert quote["taxes_cents"] == 1350
        assert quote["total_cents"] == 14850
        assert quote["tax_lines"] == [{"rule_id": lodging_tax["id"], "name": "Lodging tax", "amount_cents": 1350}]

    async def test_flat_tax_per_night(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        await _post(client, f"{campground_base}/tax-rules", {"name": "Tourism fee", "type": "flat", "rate": 200})
        quote = (await _preview(client, campground_base, _stay(site_id=rv_site["id"])))["quote"]
        assert quote["taxes_cents"] == 600

    async def test_exemption_waiver(
        self, client: AsyncClient, campground_base: str, rv_site: dict, lodging_tax: dict
    ) -> None:
        await _post(
            client,
            f"{campground_base}/tax-rules",
            {
                "name": "Resident exemption",
                "type": "exemption",
                "requires_waiver": True,
                "waiver_text": "I am a permanent resident",
            },
        )

        unsigned = (await _preview(client, campground_base, _stay(site_id=rv_site["id"])))["quote"]
        assert unsigned["waiver_required"] is True
        assert unsigned["waiver_text"] == "I am a permanent resident"
        assert unsigned["tax_exempt"] is False
        assert unsigned["taxes_cents"] == 1500

        signed = (
            await _preview(client, campground_base, _stay(site_id=rv_site["id"], waiver_signed=True))
        )["quote"]
        assert signed["tax_exempt"] is True
        assert signed["taxes_cents"] == 0
        assert signed["total_cents"] == 15000


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


class TestQuoteRequestValidation:
    """Malformed quote requests."""

    async def test_departure_not_after_arrival(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        body = {"site_id": rv_site["id"], "arrival_date": ARRIVAL.isoformat(), "departure_date": ARRIVAL.isoformat()}
        response = await client.post(f"{campground_base}/quotes/preview", json=body)
        assert response.status_code == 422

    async def test_site_or_class_required(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(f"{campground_base}/quotes/preview", json=_stay())
        assert response.status_code == 422

    async def test_site_class_mismatch(
        self, client: AsyncClient, campground_base: str, rv_site: dict, tent_class: dict
    ) -> None:
        response = await client.post(
            f"{campground_base}/quotes/preview", json=_stay(site_id=rv_site["id"], site_class_id=tent_class["id"])
        )
        assert response.status_code == 422
        assert response.json()["field"] == "site_class_id"

    async def test_unknown_site(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(f"{campground_base}/quotes/preview", json=_stay(site_id=str(uuid.uuid4())))
        assert response.status_code == 404
        assert response.json()["detail"] == "Site not found"

    async def test_site_of_other_campground(
        self, client: AsyncClient, other_campground: dict, rv_site: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/campgrounds/{other_campground['id']}/quotes/preview", json=_stay(site_id=rv_site["id"])
        )
        assert response.status_code == 404


# ---------------------------------------------------------------------------
# Issue
# ---------------------------------------------------------------------------


class TestIssueQuote:
    """Issuing persists the amounts and the rules that produced them."""

    async def test_issue_records_usage(
        self,
        client: AsyncClient,
        campground_base: str,
        rv_site: dict,
        ten_percent: dict,
        lodging_tax: dict,
        single_use_promo: dict,
    ) -> None:
        quote = await _issue(client, campground_base, _stay(site_id=rv_site["id"], promo_code="FALL10"))
        # 16500 - 1650 discount = 14850, plus 10% tax
        assert quote["total_before_tax_cents"] == 16500
        assert quote["discount_cents"] == 1650
        assert quote["taxes_cents"] == 1485
        assert quote["total_cents"] == 16335
        assert quote["promotion_code"] == "FALL10"
        assert quote["breakdown"]["total_cents"] == 16335

        usages = {(usage["rule_kind"], usage["rule_id"]) for usage in quote["rule_usages"]}
        assert usages == {
            ("pricing_rule", ten_percent["id"]),
            ("tax_rule", lodging_tax["id"]),
            ("promotion", single_use_promo["id"]),
        }

        promo = await client.get(f"{campground_base}/promotions/{single_use_promo['id']}")
        assert promo.json()["usage_count"] == 1

    async def test_overridden_rule_not_recorded(
        self, client: AsyncClient, campground_base: str, rv_site: dict, ten_percent: dict
    ) -> None:
        flat = await _post(
            client,
            f"{campground_base}/pricing-rules",
            {"name": "Flat rate", "priority": 99, "stack_mode": "override", "adjustment_type": "flat",
             "adjustment_value": "1000"},
        )
        quote = await _issue(client, campground_base, _stay(site_id=rv_site["id"]))

        assert quote["adjustments_cents"] == 3000
        pricing = [usage for usage in quote["rule_usages"] if usage["rule_kind"] == "pricing_rule"]
        assert [(usage["rule_id"], usage["amount_cents"]) for usage in pricing] == [(flat["id"], 3000)]

    async def test_usage_limit_reached(
        self, client: AsyncClient, campground_base: str, rv_site: dict, single_use_promo: dict
    ) -> None:
        await _issue(client, campground_base, _stay(site_id=rv_site["id"], promo_code="FALL10"))

        response = await client.post(f"{campground_base}/quotes", json=_stay(site_id=rv_site["id"], promo_code="FALL10"))
        assert response.status_code == 409
        data = response.json()
        assert data["kind"] == "constraint_violation"
        assert data["violation"] == "promotion_usage_limit"

    async def test_rejected_stay_conflict(self, client: AsyncClient, campground_base: str, rv_site: dict) -> None:
        await _post(
            client,
            f"{campground_base}/blackouts",
            {"start_date": ARRIVAL.isoformat(), "end_date": ARRIVAL.isoformat()},
        )
        response = await client.post(f"{campground_base}/quotes", json=_stay(site_id=rv_site["id"]))
        assert response.status_code == 409
        assert response.json()["violation"] == "blackout"

        listing = await client.get(f"{campground_base}/quotes")
        assert listing.json()["total"] == 0

    async def test_issued_quote_survives_rule_edits(
        self, client: AsyncClient, campground_base: str, rv_site: dict, ten_percent: dict
    ) -> None:
        quote = await _issue(client, campground_base, _stay(site_id=rv_site["id"]))
        assert quote["total_cents"] == 16500

        await client.patch(f"{campground_base}/pricing-rules/{ten_percent['id']}", json={"adjustment_value": "0.50"})

        stored = await client.get(f"{campground_base}/quotes/{quote['id']}")
        assert stored.status_code == 200
        assert stored.json()["total_cents"] == 16500

        repriced = (await _preview(client, campground_base, _stay(site_id=rv_site["id"])))["quote"]
        assert repriced["total_cents"] == 22500

    async def test_used_rules_cannot_be_deleted(
        self,
        client: AsyncClient,
        campground_base: str,
        rv_site: dict,
        ten_percent: dict,
        single_use_promo: dict,
    ) -> None:
        await _issue(client, campground_base, _stay(site_id=rv_site["id"], promo_code="FALL10"))

        for path in (f"pricing-rules/{ten_percent['id']}", f"promotions/{single_use_promo['id']}"):
            response = await client.delete(f"{campground_base}/{path}")
            assert response.status_code == 409
            assert response.json()["kind"] == "conflict"

        toggled = await client.put(
            f"{campground_base}/pricing-rules/{ten_percent['id']}/active", json={"is_active": False}
        )
        assert toggled.status_code == 200
        assert toggled.json()["active"] is False

    async def test_list_and_tenant_scope(
        self, client: AsyncClient, campground_base: str, rv_site: dict, other_campground: dict
    ) -> None:
        first = await _issue(client, campground_base, _stay(site_id=rv_site["id"]))
        await _issue(client, campground_base, _stay(nights=2, site_id=rv_site["id"]))

        listing = await client.get(f"{campground_base}/quotes")
        assert listing.json()["total"] == 2

        foreign = await client.get(f"/api/v1/campgrounds/{other_campground['id']}/quotes/{first['id']}")
        assert foreign.status_code == 404
