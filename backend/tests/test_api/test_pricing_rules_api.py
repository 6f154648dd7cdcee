"""Tests for pricing rule and demand band endpoints."""

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _create_rule(client: AsyncClient, campground_base: str, **fields) -> dict:
    payload = {"name": "Rule", "adjustment_type": "percent", "adjustment_value": "0.10", **fields}
    response = await client.post(f"{campground_base}/pricing-rules", json=payload)
    assert response.status_code == 201, f"Failed to create pricing rule: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def high_band(client: AsyncClient, campground_base: str) -> dict:
    response = await client.post(
        f"{campground_base}/demand-bands",
        json={"name": "High occupancy", "threshold_pct": 85, "adjustment_value": "0.15"},
    )
    assert response.status_code == 201, f"Failed to create demand band: {response.text}"
    return response.json()


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------


class TestCreatePricingRule:
    """Tests for creating pricing rules."""

    async def test_create_weekend_premium(self, client: AsyncClient, campground_base: str) -> None:
        rule = await _create_rule(
            client, campground_base, name="Weekend", type="weekend", adjustment_value="0.20", dow_mask=[6, 5]
        )
        assert rule["type"] == "weekend"
        assert rule["stack_mode"] == "additive"
        assert rule["priority"] == 10
        assert Decimal(rule["adjustment_value"]) == Decimal("0.20")
        assert rule["display_value"] == "20"
        assert sorted(rule["dow_mask"]) == [5, 6]
        assert rule["active"] is True

    async def test_flat_discount_display(self, client: AsyncClient, campground_base: str) -> None:
        rule = await _create_rule(
            client, campground_base, name="Midweek", adjustment_type="flat", adjustment_value="-500"
        )
        assert rule["display_value"] == "-5.00"

    async def test_dow_mask_and_window_rejected(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(
            f"{campground_base}/pricing-rules",
            json={
                "name": "Both",
                "adjustment_value": "0.1",
                "dow_mask": [6],
                "start_date": "2025-06-01",
                "end_date": "2025-06-30",
            },
        )
        assert response.status_code == 422
        assert response.json()["field"] == "dow_mask"

    async def test_max_cap_below_min_cap_rejected(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(
            f"{campground_base}/pricing-rules",
            json={"name": "Caps", "adjustment_value": "0.1", "min_rate_cap": 6000, "max_rate_cap": 5000},
        )
        assert response.status_code == 422
        assert response.json()["field"] == "max_rate_cap"

    async def test_bad_stack_mode_rejected(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(
            f"{campground_base}/pricing-rules",
            json={"name": "Odd", "adjustment_value": "0.1", "stack_mode": "multiply"},
        )
        assert response.status_code == 422

    async def test_site_class_of_other_campground_rejected(
        self, client: AsyncClient, other_campground: dict, rv_class: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/campgrounds/{other_campground['id']}/pricing-rules",
            json={"name": "Scoped", "adjustment_value": "0.1", "site_class_id": rv_class["id"]},
        )
        assert response.status_code == 422
        assert response.json()["field"] == "site_class_id"

    async def test_demand_rule_references_band(
        self, client: AsyncClient, campground_base: str, high_band: dict
    ) -> None:
        rule = await _create_rule(
            client, campground_base, name="Surge", type="demand", adjustment_value=None, demand_band_id=high_band["id"]
        )
        assert rule["demand_band_id"] == high_band["id"]
        assert rule["adjustment_value"] is None


class TestListPricingRules:
    """Pricing rules list in evaluation order."""

    async def test_priority_then_insertion(self, client: AsyncClient, campground_base: str) -> None:
        await _create_rule(client, campground_base, name="Tie created first", priority=20)
        await _create_rule(client, campground_base, name="First", priority=5)
        await _create_rule(client, campground_base, name="Tie created last", priority=20)

        response = await client.get(f"{campground_base}/pricing-rules")
        names = [item["name"] for item in response.json()["items"]]
        assert names == ["First", "Tie created first", "Tie created last"]

    async def test_filters(self, client: AsyncClient, campground_base: str, rv_class: dict) -> None:
        await _create_rule(client, campground_base, name="Weekend", type="weekend", dow_mask=[5, 6])
        scoped = await _create_rule(client, campground_base, name="RV only", site_class_id=rv_class["id"])
        await client.put(f"{campground_base}/pricing-rules/{scoped['id']}/active", json={"is_active": False})

        weekend = await client.get(f"{campground_base}/pricing-rules", params={"type": "weekend"})
        assert [item["name"] for item in weekend.json()["items"]] == ["Weekend"]

        by_class = await client.get(f"{campground_base}/pricing-rules", params={"site_class_id": rv_class["id"]})
        assert [item["name"] for item in by_class.json()["items"]] == ["RV only"]

        inactive = await client.get(f"{campground_base}/pricing-rules", params={"active": "false"})
        assert [item["name"] for item in inactive.json()["items"]] == ["RV only"]


class TestUpdatePricingRule:
    """Tests for updating, toggling and deleting pricing rules."""

    async def test_update_priority_reorders(self, client: AsyncClient, campground_base: str) -> None:
        first = await _create_rule(client, campground_base, name="A", priority=1)
        await _create_rule(client, campground_base, name="B", priority=2)

        response = await client.patch(f"{campground_base}/pricing-rules/{first['id']}", json={"priority": 3})
        assert response.status_code == 200

        listing = await client.get(f"{campground_base}/pricing-rules")
        assert [item["name"] for item in listing.json()["items"]] == ["B", "A"]

    async def test_adding_window_to_weekday_rule_rejected(self, client: AsyncClient, campground_base: str) -> None:
        weekend = await _create_rule(client, campground_base, name="Weekend", dow_mask=[5, 6])
        response = await client.patch(
            f"{campground_base}/pricing-rules/{weekend['id']}", json={"start_date": "2025-07-01"}
        )
        assert response.status_code == 422

        current = await client.get(f"{campground_base}/pricing-rules/{weekend['id']}")
        assert current.json()["start_date"] is None

    async def test_resave_unchanged_is_no_op(self, client: AsyncClient, campground_base: str) -> None:
        rule = await _create_rule(client, campground_base, name="Same", adjustment_value="0.10")
        response = await client.patch(
            f"{campground_base}/pricing-rules/{rule['id']}",
            json={"name": "Same", "adjustment_value": "0.1000", "priority": 10},
        )
        assert response.status_code == 200

        audit = await client.get(f"{campground_base}/audit", params={"rule_id": rule["id"]})
        assert [entry["action"] for entry in audit.json()["items"]] == ["create"]

    async def test_toggle_uses_active_field(self, client: AsyncClient, campground_base: str) -> None:
        rule = await _create_rule(client, campground_base)
        response = await client.put(f"{campground_base}/pricing-rules/{rule['id']}/active", json={"is_active": False})
        assert response.status_code == 200
        assert response.json()["active"] is False

    async def test_null_active_rejected(self, client: AsyncClient, campground_base: str) -> None:
        rule = await _create_rule(client, campground_base)
        url = f"{campground_base}/pricing-rules/{rule['id']}"

        response = await client.patch(url, json={"active": None})
        assert response.status_code == 422
        assert response.json()["detail"][0]["loc"] == ["body", "active"]

        renamed = await client.patch(url, json={"name": "Renamed"})
        assert renamed.status_code == 200
        assert renamed.json()["active"] is True

    async def test_delete_unused(self, client: AsyncClient, campground_base: str) -> None:
        rule = await _create_rule(client, campground_base)
        response = await client.delete(f"{campground_base}/pricing-rules/{rule['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "Pricing rule deleted successfully"


# ---------------------------------------------------------------------------
# Demand bands
# ---------------------------------------------------------------------------


class TestDemandBands:
    """Tests for demand band endpoints."""

    async def test_create_and_display(self, high_band: dict) -> None:
        assert high_band["threshold_pct"] == 85
        assert high_band["display_value"] == "15"
        assert high_band["active"] is True

    async def test_null_active_rejected(self, client: AsyncClient, campground_base: str, high_band: dict) -> None:
        response = await client.patch(f"{campground_base}/demand-bands/{high_band['id']}", json={"active": None})
        assert response.status_code == 422

    async def test_threshold_out_of_range(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(
            f"{campground_base}/demand-bands", json={"name": "Bad", "threshold_pct": 120, "adjustment_value": "0.1"}
        )
        assert response.status_code == 422

    async def test_list_by_threshold(self, client: AsyncClient, campground_base: str, high_band: dict) -> None:
        await client.post(
            f"{campground_base}/demand-bands", json={"name": "Low", "threshold_pct": 20, "adjustment_value": "-0.1"}
        )
        response = await client.get(f"{campground_base}/demand-bands")
        assert [band["name"] for band in response.json()] == ["Low", "High occupancy"]

    async def test_delete_blocked_while_referenced(
        self, client: AsyncClient, campground_base: str, high_band: dict
    ) -> None:
        rule = await _create_rule(
            client, campground_base, name="Surge", type="demand", adjustment_value=None, demand_band_id=high_band["id"]
        )

        blocked = await client.delete(f"{campground_base}/demand-bands/{high_band['id']}")
        assert blocked.status_code == 409

        await client.delete(f"{campground_base}/pricing-rules/{rule['id']}")
        deleted = await client.delete(f"{campground_base}/demand-bands/{high_band['id']}")
        assert deleted.status_code == 200
        assert deleted.json()["message"] == "Demand band deleted successfully"
