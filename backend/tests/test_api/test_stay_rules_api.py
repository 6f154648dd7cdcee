"""Tests for stay rule endpoints."""

import pytest
import pytest_asyncio
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def rv_minimum(client: AsyncClient, campground_base: str, rv_class: dict) -> dict:
    response = await client.post(
        f"{campground_base}/stay-rules",
        json={
            "name": "RV weekly minimum",
            "min_nights": 7,
            "max_nights": 21,
            "site_classes": [rv_class["id"]],
            "ignore_days_before": 14,
        },
    )
    assert response.status_code == 201, f"Failed to create stay rule: {response.text}"
    return response.json()


class TestCreateStayRule:
    """Tests for creating stay rules."""

    async def test_create(self, rv_minimum: dict, rv_class: dict) -> None:
        assert rv_minimum["min_nights"] == 7
        assert rv_minimum["max_nights"] == 21
        assert rv_minimum["site_classes"] == [rv_class["id"]]
        assert rv_minimum["date_ranges"] == []
        assert rv_minimum["ignore_days_before"] == 14

    async def test_min_above_max_rejected(self, client: AsyncClient, campground_base: str) -> None:
        """min 10, max 5 cannot be saved."""
        response = await client.post(
            f"{campground_base}/stay-rules", json={"name": "Broken", "min_nights": 10, "max_nights": 5}
        )
        assert response.status_code == 422
        data = response.json()
        assert data["kind"] == "validation_error"
        assert data["field"] == "max_nights"

        listing = await client.get(f"{campground_base}/stay-rules")
        assert listing.json()["total"] == 0

    async def test_date_ranges_round_trip(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(
            f"{campground_base}/stay-rules",
            json={
                "name": "Holiday weekend",
                "min_nights": 3,
                "max_nights": 14,
                "date_ranges": [{"start": "2025-07-03", "end": "2025-07-05"}],
            },
        )
        assert response.status_code == 201
        assert response.json()["date_ranges"] == [{"start": "2025-07-03", "end": "2025-07-05"}]

    async def test_inverted_date_range_rejected(self, client: AsyncClient, campground_base: str) -> None:
        response = await client.post(
            f"{campground_base}/stay-rules",
            json={"name": "Bad", "date_ranges": [{"start": "2025-07-05", "end": "2025-07-03"}]},
        )
        assert response.status_code == 422

    async def test_site_class_of_other_campground_rejected(
        self, client: AsyncClient, other_campground: dict, rv_class: dict
    ) -> None:
        response = await client.post(
            f"/api/v1/campgrounds/{other_campground['id']}/stay-rules",
            json={"name": "Foreign", "site_classes": [rv_class["id"]]},
        )
        assert response.status_code == 422
        assert response.json()["field"] == "site_classes"


class TestUpdateStayRule:
    """Tests for updating stay rules."""

    async def test_raise_min_above_max_rejected(
        self, client: AsyncClient, campground_base: str, rv_minimum: dict
    ) -> None:
        response = await client.patch(f"{campground_base}/stay-rules/{rv_minimum['id']}", json={"min_nights": 30})
        assert response.status_code == 422

        current = await client.get(f"{campground_base}/stay-rules/{rv_minimum['id']}")
        assert current.json()["min_nights"] == 7

    async def test_widen_scope(self, client: AsyncClient, campground_base: str, rv_minimum: dict) -> None:
        response = await client.patch(f"{campground_base}/stay-rules/{rv_minimum['id']}", json={"site_classes": []})
        assert response.status_code == 200
        assert response.json()["site_classes"] == []

    async def test_toggle_and_filter(self, client: AsyncClient, campground_base: str, rv_minimum: dict) -> None:
        await client.put(f"{campground_base}/stay-rules/{rv_minimum['id']}/active", json={"is_active": False})

        active = await client.get(f"{campground_base}/stay-rules", params={"is_active": "true"})
        assert active.json()["total"] == 0
        inactive = await client.get(f"{campground_base}/stay-rules", params={"is_active": "false"})
        assert inactive.json()["total"] == 1

    async def test_delete(self, client: AsyncClient, campground_base: str, rv_minimum: dict) -> None:
        response = await client.delete(f"{campground_base}/stay-rules/{rv_minimum['id']}")
        assert response.status_code == 200
        assert response.json()["message"] == "Stay rule deleted successfully"
