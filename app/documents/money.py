# app/documents/money.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import DocumentValidationError

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """
    Coerce user/wire input to Decimal.

    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    None and "" mean zero (empty form field).
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise DocumentValidationError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        s = value.strip().replace(",", "").lstrip("$")
        if not s:
            return ZERO
        try:
            d = Decimal(s)
        except InvalidOperation:
            raise DocumentValidationError(f"Not a number: {value!r}") from None
        if not d.is_finite():
            raise DocumentValidationError(f"Not a number: {value!r}")
        return d
    raise DocumentValidationError(f"Not a number: {value!r}")


def extend(quantity, unit_price) -> Decimal:
    return Decimal(quantity) * to_decimal(unit_price)


def percent_of(amount: Decimal, rate) -> Decimal:
    return amount * to_decimal(rate) / Decimal(100)


def round_cents(amount) -> Decimal:
    return to_decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def _display_cents(amount) -> Decimal:
    d = round_cents(amount)
    # -0.001 rounds to -0.00; never print a negative zero
    return abs(d) if d == 0 else d


def format_amount(amount) -> str:
    # 1234.5 -> "1,234.50"
    return f"{_display_cents(amount):,.2f}"


def format_currency(amount) -> str:
    d = _display_cents(amount)
    if d < 0:
        return f"-${-d:,.2f}"
    return f"${d:,.2f}"


def format_rate(rate) -> str:
    d = to_decimal(rate)
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return format(d.normalize(), "f")


def decimal_str(amount) -> str:
    """Persisted form: plain decimal string, unrounded."""
    return format(to_decimal(amount), "f")
