"""Explicit tenant context passed to every rule-store and evaluator call."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

from campreserv.errors import TenantMismatchError, TenantRequiredError


@dataclass(frozen=True)
class TenantContext:
    """The campground an operation is scoped to."""

    campground_id: uuid.UUID

    @classmethod
    def from_value(cls, value: uuid.UUID | str | None) -> "TenantContext":
        """Build a context from a stored selection; empty selections are refused."""
        if value is None or (isinstance(value, str) and not value.strip()):
            raise TenantRequiredError()
        if isinstance(value, uuid.UUID):
            return cls(value)
        try:
            return cls(uuid.UUID(value.strip()))
        except ValueError:
            raise TenantRequiredError(f"Invalid campground id: {value!r}") from None

    def owns(self, row: Any) -> bool:
        return getattr(row, "campground_id", None) == self.campground_id

    def ensure_owns(self, row: Any) -> None:
        """Raise if ``row`` belongs to a different campground."""
        if not self.owns(row):
            raise TenantMismatchError(
                f"{type(row).__name__} {getattr(row, 'id', '?')} does not belong to campground {self.campground_id}"
            )
