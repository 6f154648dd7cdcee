"""Compile settings-form values into canonical rule payloads, and back.

Forms hold what staff type ("10" for 10%, "25.00" for $25); payloads hold
canonical units ready for the REST API. ``compile_x(decompile_x(payload))``
returns the same payload, so re-saving an unchanged form is a no-op.
"""

from __future__ import annotations

from typing import Any

from campreserv.errors import ValidationError
from campreserv.rules.normalizer import ValueKind, format_display, to_canonical


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _optional_int(form: dict[str, Any], field: str) -> int | None:
    value = form.get(field)
    if _blank(value):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} must be a whole number", field=field) from None


def _optional_text(form: dict[str, Any], field: str) -> str | None:
    value = form.get(field)
    return None if _blank(value) else str(value).strip()


def _optional_cents(form: dict[str, Any], field: str) -> int | None:
    value = form.get(field)
    if _blank(value):
        return None
    return to_canonical(ValueKind.CURRENCY, value, field=field)


def _display_or_blank(kind: ValueKind, value: Any) -> str:
    return format_display(kind, value) or ""


# ---------------------------------------------------------------------------
# Pricing rules
# ---------------------------------------------------------------------------


def compile_pricing_rule(form: dict[str, Any]) -> dict[str, Any]:
    """Form -> pricing rule payload.

    ``adjustment_value`` is a percent ("10") or dollar amount ("5.00") depending
    on ``adjustment_type``; a truthy ``is_discount`` negates it.
    """
    adjustment_type = form.get("adjustment_type", "percent")
    kind = ValueKind.PERCENT_ADJUSTMENT if adjustment_type == "percent" else ValueKind.CURRENCY
    raw = form.get("adjustment_value")
    if _blank(raw):
        raise ValidationError("Adjustment value is required", field="adjustment_value")

    adjustment_value = to_canonical(kind, raw, discount=bool(form.get("is_discount")), field="adjustment_value")
    dow_mask = form.get("dow_mask") or None

    return {
        "name": (form.get("name") or "").strip(),
        "type": form.get("type", "season"),
        "priority": int(form.get("priority", 10)),
        "stack_mode": form.get("stack_mode", "additive"),
        "adjustment_type": adjustment_type,
        "adjustment_value": str(adjustment_value),
        "site_class_id": _optional_text(form, "site_class_id"),
        "dow_mask": sorted(int(day) for day in dow_mask) if dow_mask else None,
        "start_date": _optional_text(form, "start_date"),
        "end_date": _optional_text(form, "end_date"),
        "min_nights": _optional_int(form, "min_nights"),
        "min_rate_cap": _optional_cents(form, "min_rate_cap"),
        "max_rate_cap": _optional_cents(form, "max_rate_cap"),
        "demand_band_id": _optional_text(form, "demand_band_id"),
        "active": bool(form.get("active", True)),
    }


def decompile_pricing_rule(payload: dict[str, Any]) -> dict[str, Any]:
    """Pricing rule payload -> form values for the edit dialog."""
    kind = ValueKind.PERCENT_ADJUSTMENT if payload["adjustment_type"] == "percent" else ValueKind.CURRENCY
    return {
        "name": payload["name"],
        "type": payload["type"],
        "priority": payload["priority"],
        "stack_mode": payload["stack_mode"],
        "adjustment_type": payload["adjustment_type"],
        "adjustment_value": _display_or_blank(kind, payload["adjustment_value"]),
        "is_discount": False,
        "site_class_id": payload.get("site_class_id") or "",
        "dow_mask": list(payload.get("dow_mask") or []),
        "start_date": payload.get("start_date") or "",
        "end_date": payload.get("end_date") or "",
        "min_nights": "" if payload.get("min_nights") is None else str(payload["min_nights"]),
        "min_rate_cap": _display_or_blank(ValueKind.CURRENCY, payload.get("min_rate_cap")),
        "max_rate_cap": _display_or_blank(ValueKind.CURRENCY, payload.get("max_rate_cap")),
        "demand_band_id": payload.get("demand_band_id") or "",
        "active": payload.get("active", True),
    }


# ---------------------------------------------------------------------------
# Tax rules
# ---------------------------------------------------------------------------


def compile_tax_rule(form: dict[str, Any]) -> dict[str, Any]:
    """Form -> tax rule payload. Exemptions never carry a rate."""
    rule_type = form.get("type", "percentage")
    rate: str | int | None = None
    if rule_type != "exemption":
        raw = form.get("rate")
        if _blank(raw):
            raise ValidationError("Rate is required for percentage and flat taxes", field="rate")
        if rule_type == "percentage":
            rate = str(to_canonical(ValueKind.TAX_PERCENTAGE, raw, field="rate"))
        else:
            rate = to_canonical(ValueKind.CURRENCY, raw, field="rate")

    return {
        "name": (form.get("name") or "").strip(),
        "type": rule_type,
        "rate": rate,
        "min_nights": _optional_int(form, "min_nights"),
        "max_nights": _optional_int(form, "max_nights"),
        "requires_waiver": bool(form.get("requires_waiver", False)),
        "waiver_text": _optional_text(form, "waiver_text"),
        "is_active": bool(form.get("is_active", True)),
    }


def decompile_tax_rule(payload: dict[str, Any]) -> dict[str, Any]:
    rate = payload.get("rate")
    if payload["type"] == "percentage":
        rate_text = _display_or_blank(ValueKind.TAX_PERCENTAGE, rate)
    elif payload["type"] == "flat":
        rate_text = _display_or_blank(ValueKind.CURRENCY, rate)
    else:
        rate_text = ""
    return {
        "name": payload["name"],
        "type": payload["type"],
        "rate": rate_text,
        "min_nights": "" if payload.get("min_nights") is None else str(payload["min_nights"]),
        "max_nights": "" if payload.get("max_nights") is None else str(payload["max_nights"]),
        "requires_waiver": payload.get("requires_waiver", False),
        "waiver_text": payload.get("waiver_text") or "",
        "is_active": payload.get("is_active", True),
    }


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------


def compile_promotion(form: dict[str, Any]) -> dict[str, Any]:
    """Form -> promotion payload. Codes are trimmed and upper-cased."""
    promo_type = form.get("type", "percentage")
    raw = form.get("value")
    if _blank(raw):
        raise ValidationError("Discount value is required", field="value")
    if promo_type == "percentage":
        value: str | int = str(to_canonical(ValueKind.PROMOTION_PERCENTAGE, raw, field="value"))
    else:
        value = to_canonical(ValueKind.CURRENCY, raw, field="value")

    return {
        "code": (form.get("code") or "").strip().upper(),
        "type": promo_type,
        "value": value,
        "valid_from": _optional_text(form, "valid_from"),
        "valid_to": _optional_text(form, "valid_to"),
        "usage_limit": _optional_int(form, "usage_limit"),
        "description": _optional_text(form, "description"),
        "is_active": bool(form.get("is_active", True)),
    }


def decompile_promotion(payload: dict[str, Any]) -> dict[str, Any]:
    kind = ValueKind.PROMOTION_PERCENTAGE if payload["type"] == "percentage" else ValueKind.CURRENCY
    return {
        "code": payload["code"],
        "type": payload["type"],
        "value": _display_or_blank(kind, payload["value"]),
        "valid_from": payload.get("valid_from") or "",
        "valid_to": payload.get("valid_to") or "",
        "usage_limit": "" if payload.get("usage_limit") is None else str(payload["usage_limit"]),
        "description": payload.get("description") or "",
        "is_active": payload.get("is_active", True),
    }
