"""Async HTTP client for the rules API.

The client keeps the selected campground in a ``TenantContext``. Every
tenant-scoped call goes through ``_tenant_path``, which refuses to build a URL
when no campground is selected, so an unscoped request is never sent::

    async with CampreserveClient("http://localhost:8000") as api:
        api.select_campground(campground_id)
        rules = await api.list_rules("pricing_rule", active=True)

Non-2xx responses are raised as the matching ``campreserv.errors`` exception;
network failures become ``TransportError``. Nothing is retried.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

import httpx

from campreserv.config import settings
from campreserv.errors import TenantNotSelectedError, TransportError, error_from_payload
from campreserv.rules.compiler import compile_pricing_rule, compile_promotion, compile_tax_rule
from campreserv.tenancy import TenantContext

logger = logging.getLogger(__name__)

RULE_PATHS: dict[str, str] = {
    "pricing_rule": "pricing-rules",
    "demand_band": "demand-bands",
    "tax_rule": "tax-rules",
    "seasonal_rate": "seasonal-rates",
    "stay_rule": "stay-rules",
    "blackout": "blackouts",
    "promotion": "promotions",
}


class CampreserveClient:
    def __init__(
        self,
        base_url: str | None = None,
        *,
        campground_id: uuid.UUID | str | None = None,
        actor: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"X-Actor": actor} if actor else {}
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            headers=headers,
            transport=transport,
        )
        self.tenant: TenantContext | None = None
        if campground_id is not None:
            self.select_campground(campground_id)

    async def __aenter__(self) -> CampreserveClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Tenant selection
    # ------------------------------------------------------------------

    def select_campground(self, campground_id: uuid.UUID | str | None) -> TenantContext:
        self.tenant = TenantContext.from_value(campground_id)
        return self.tenant

    def clear_campground(self) -> None:
        self.tenant = None

    def _tenant_path(self, path: str) -> str:
        if self.tenant is None:
            raise TenantNotSelectedError()
        return f"/api/v1/campgrounds/{self.tenant.campground_id}/{path}"

    @staticmethod
    def _rule_path(kind: str) -> str:
        try:
            return RULE_PATHS[kind]
        except KeyError:
            raise ValueError(f"Unknown rule kind {kind!r}") from None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportError(f"Could not reach the rules API: {exc}") from exc

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {"detail": response.text}
            if not isinstance(payload, dict):
                payload = {"detail": payload}
            raise error_from_payload(response.status_code, payload)
        return response.json()

    # ------------------------------------------------------------------
    # Campgrounds
    # ------------------------------------------------------------------

    async def create_campground(self, name: str, slug: str, **fields: Any) -> dict[str, Any]:
        return await self._request("POST", "/api/v1/campgrounds", json={"name": name, "slug": slug, **fields})

    async def list_campgrounds(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/api/v1/campgrounds")
        return data["items"]

    # ------------------------------------------------------------------
    # Rules (any family)
    # ------------------------------------------------------------------

    async def list_rules(self, kind: str, **filters: Any) -> list[dict[str, Any]]:
        params = {key: value for key, value in filters.items() if value is not None}
        data = await self._request("GET", self._tenant_path(self._rule_path(kind)), params=params)
        return data["items"] if isinstance(data, dict) else data

    async def get_rule(self, kind: str, rule_id: uuid.UUID | str) -> dict[str, Any]:
        return await self._request("GET", self._tenant_path(f"{self._rule_path(kind)}/{rule_id}"))

    async def create_rule(self, kind: str, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", self._tenant_path(self._rule_path(kind)), json=payload)

    async def update_rule(self, kind: str, rule_id: uuid.UUID | str, changes: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PATCH", self._tenant_path(f"{self._rule_path(kind)}/{rule_id}"), json=changes)

    async def set_active(self, kind: str, rule_id: uuid.UUID | str, is_active: bool) -> dict[str, Any]:
        return await self._request(
            "PUT",
            self._tenant_path(f"{self._rule_path(kind)}/{rule_id}/active"),
            json={"is_active": is_active},
        )

    async def delete_rule(self, kind: str, rule_id: uuid.UUID | str) -> None:
        await self._request("DELETE", self._tenant_path(f"{self._rule_path(kind)}/{rule_id}"))

    # ------------------------------------------------------------------
    # Settings forms
    # ------------------------------------------------------------------

    async def save_pricing_rule_form(self, form: dict[str, Any], rule_id: uuid.UUID | str | None = None) -> dict:
        """Compile a settings form and create or replace the rule."""
        payload = compile_pricing_rule(form)
        if rule_id is None:
            return await self.create_rule("pricing_rule", payload)
        return await self.update_rule("pricing_rule", rule_id, payload)

    async def save_tax_rule_form(self, form: dict[str, Any], rule_id: uuid.UUID | str | None = None) -> dict:
        payload = compile_tax_rule(form)
        if rule_id is None:
            return await self.create_rule("tax_rule", payload)
        return await self.update_rule("tax_rule", rule_id, payload)

    async def save_promotion_form(self, form: dict[str, Any], rule_id: uuid.UUID | str | None = None) -> dict:
        payload = compile_promotion(form)
        if rule_id is None:
            return await self.create_rule("promotion", payload)
        return await self.update_rule("promotion", rule_id, payload)

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    @staticmethod
    def _stay_payload(arrival: date, departure: date, **fields: Any) -> dict[str, Any]:
        payload = {"arrival_date": arrival.isoformat(), "departure_date": departure.isoformat()}
        for key, value in fields.items():
            if value is None:
                continue
            payload[key] = str(value) if isinstance(value, uuid.UUID) else value
        return payload

    async def preview_quote(self, arrival: date, departure: date, **fields: Any) -> dict[str, Any]:
        """Admit-or-reject decision with the price breakdown; nothing is written."""
        return await self._request(
            "POST", self._tenant_path("quotes/preview"), json=self._stay_payload(arrival, departure, **fields)
        )

    async def issue_quote(self, arrival: date, departure: date, **fields: Any) -> dict[str, Any]:
        """Issue a quote. A rejected stay raises ``ConstraintViolation``."""
        return await self._request(
            "POST", self._tenant_path("quotes"), json=self._stay_payload(arrival, departure, **fields)
        )
