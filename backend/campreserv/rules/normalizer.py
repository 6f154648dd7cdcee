"""Conversion between human-entered values and canonical storage units.

Canonical units:

- ``percent_adjustment``: signed fraction, 4 decimal places (``"10"`` -> ``0.1000``)
- ``currency``: integer cents (``"25.00"`` -> ``2500``)
- ``tax_percentage`` / ``promotion_percentage``: whole-number percent, 2 decimal
  places (``"7.5"`` -> ``7.50``)

``from_canonical(kind, to_canonical(kind, x)) == x`` for every ``x`` with at most
two decimal places.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from campreserv.errors import ValidationError

CENT = Decimal("0.01")
FRACTION_PLACES = Decimal("0.0001")


class ValueKind(str, Enum):
    PERCENT_ADJUSTMENT = "percent_adjustment"
    CURRENCY = "currency"
    TAX_PERCENTAGE = "tax_percentage"
    PROMOTION_PERCENTAGE = "promotion_percentage"


def parse_decimal(raw: str | int | float | Decimal, field: str | None = None) -> Decimal:
    """Parse a form value into a Decimal, rejecting blanks and non-numbers."""
    if isinstance(raw, bool):
        raise ValidationError(f"Expected a number, got {raw!r}", field=field)
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, (int, float)):
        # str() keeps 7.5 as 7.5 instead of the binary expansion
        value = Decimal(str(raw))
    else:
        text = str(raw).strip().replace(",", "").lstrip("$").rstrip("%").strip()
        if not text:
            raise ValidationError("A value is required", field=field)
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise ValidationError(f"Not a number: {raw!r}", field=field) from None
    if not value.is_finite():
        raise ValidationError(f"Not a finite number: {raw!r}", field=field)
    return value


def to_canonical(
    kind: ValueKind | str,
    raw: str | int | float | Decimal,
    *,
    discount: bool = False,
    field: str | None = None,
) -> Decimal | int:
    """Convert a display value to its stored representation.

    ``discount=True`` negates the value, for "percent off" / "amount off" inputs.
    """
    kind = ValueKind(kind)
    value = parse_decimal(raw, field=field).quantize(CENT, rounding=ROUND_HALF_UP)
    if discount:
        value = -value

    if kind is ValueKind.PERCENT_ADJUSTMENT:
        return (value / 100).quantize(FRACTION_PLACES, rounding=ROUND_HALF_UP)
    if kind is ValueKind.CURRENCY:
        return int((value * 100).to_integral_value(rounding=ROUND_HALF_UP))
    return value


def from_canonical(kind: ValueKind | str, value: Decimal | int | float, *, discount: bool = False) -> Decimal:
    """Convert a stored value back to what the form displays."""
    kind = ValueKind(kind)
    stored = value if isinstance(value, Decimal) else Decimal(str(value))

    if kind is ValueKind.PERCENT_ADJUSTMENT:
        display = (stored * 100).quantize(CENT, rounding=ROUND_HALF_UP)
    elif kind is ValueKind.CURRENCY:
        display = (stored / 100).quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        display = stored.quantize(CENT, rounding=ROUND_HALF_UP)
    return -display if discount else display


def format_display(kind: ValueKind | str, value: Decimal | int | float | None) -> str | None:
    """Render a stored value the way the settings pages show it.

    Percentages drop trailing zeros (``7.50`` -> ``"7.5"``); currency always
    shows two decimals (``2500`` -> ``"25.00"``).
    """
    if value is None:
        return None
    kind = ValueKind(kind)
    display = from_canonical(kind, value)
    if kind is ValueKind.CURRENCY:
        return f"{display:.2f}"
    text = format(display.normalize(), "f")
    return "0" if text == "-0" else text
