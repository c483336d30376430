# inventory/services/money.py

"""
MONEY HELPERS

All amounts are Decimal, quantized to 2 places with ROUND_HALF_UP.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    if isinstance(v, float):
        v = repr(v)
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_decimal(v) -> Decimal | None:
    """Parse without quantizing; None when the value is not a number."""
    if v is None or isinstance(v, bool):
        return None
    try:
        d = Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def price_tolerance() -> Decimal:
    return Decimal(str(getattr(settings, "INVENTORY_PRICE_TOLERANCE", "0.01")))


def currency_label() -> str:
    return getattr(settings, "INVENTORY_CURRENCY_LABEL", "PKR")


def format_money(v) -> str:
    return f"{currency_label()} {money(v):.2f}"


def jsonable(value):
    """
    Recursively render Decimals as "0.00" strings for API payloads built from dicts.
    """
    if isinstance(value, Decimal):
        return f"{money(value):.2f}"
    if isinstance(value, dict):
        return {k: jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value
