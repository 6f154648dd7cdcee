"""Domain exceptions shared by the rule store, evaluator, API and client.

Every exception carries a stable ``kind`` string so that the HTTP layer and the
API client agree on how an error is rendered and re-raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class Violation(str, Enum):
    """The concrete constraint that rejected a stay."""

    BLACKOUT = "blackout"
    MIN_NIGHTS = "min_nights"
    MAX_NIGHTS = "max_nights"
    PROMOTION_UNKNOWN = "promotion_unknown"
    PROMOTION_INACTIVE = "promotion_inactive"
    PROMOTION_NOT_STARTED = "promotion_not_started"
    PROMOTION_EXPIRED = "promotion_expired"
    PROMOTION_USAGE_LIMIT = "promotion_usage_limit"


class CampreserveError(Exception):
    """Base class for all domain errors."""

    kind = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "kind": self.kind}


class ValidationError(CampreserveError):
    """Malformed rule input (missing name, non-positive rate, min > max nights)."""

    kind = "validation_error"
    status_code = 422

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "field": self.field}


class ConflictError(CampreserveError):
    """Duplicate promotion code, or hard delete of a rule with usage history."""

    kind = "conflict"
    status_code = 409

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "field": self.field}


class NotFoundError(CampreserveError):
    """The id does not exist, or belongs to another campground."""

    kind = "not_found"
    status_code = 404


class ConstraintViolation(CampreserveError):
    """A stay was rejected by a blackout, stay-length or promotion check."""

    kind = "constraint_violation"
    status_code = 409

    def __init__(self, violation: Violation, message: str) -> None:
        super().__init__(message)
        self.violation = Violation(violation)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "violation": self.violation.value}


class TenantRequiredError(CampreserveError):
    """No campground is selected for a tenant-scoped operation."""

    kind = "tenant_required"
    status_code = 400

    def __init__(self, message: str = "Select a campground to continue") -> None:
        super().__init__(message)


class TenantNotSelectedError(TenantRequiredError):
    """The API client has no campground selected; nothing was sent."""


class TenantMismatchError(CampreserveError):
    """A row from another campground reached a tenant-scoped operation."""

    kind = "tenant_mismatch"
    status_code = 403


class TransportError(CampreserveError):
    """The API could not be reached. Raised client-side only; never retried."""

    kind = "transport_error"
    status_code = 503


_ERRORS_BY_KIND: dict[str, type[CampreserveError]] = {
    cls.kind: cls
    for cls in (
        ValidationError,
        ConflictError,
        NotFoundError,
        ConstraintViolation,
        TenantRequiredError,
        TenantMismatchError,
        TransportError,
    )
}


def error_from_payload(status_code: int, payload: dict[str, Any]) -> CampreserveError:
    """Rebuild a domain error from an API error body."""
    detail = payload.get("detail")
    message = detail if isinstance(detail, str) else str(detail)
    cls = _ERRORS_BY_KIND.get(payload.get("kind", ""))

    if cls is ConstraintViolation:
        return ConstraintViolation(Violation(payload["violation"]), message)
    if cls in (ValidationError, ConflictError):
        return cls(message, field=payload.get("field"))
    if cls is not None:
        return cls(message)

    # Bodies without a kind: FastAPI's own request validation and HTTPExceptions
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 409:
        return ConflictError(message)
    if status_code == 422:
        return ValidationError(message)
    error = CampreserveError(message)
    error.status_code = status_code
    return error
