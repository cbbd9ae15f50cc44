# core/money.py

"""
MONEY / QUANTITY NORMALIZER

Every monetary value in the system passes through to_money() before it is
persisted or compared. Quantities pass through to_quantity().

Rules:
- Never raises: garbage in -> caller-supplied fallback out
- Money is rounded to 2 places, ROUND_HALF_UP
- Per-unit batch costs (to_unit_cost) keep 4 places
- Floats go through str() first, so 1.005 rounds to 1.01 (not 1.00)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")
COSTPLACES = Decimal("0.0001")
ZERO = Decimal("0.00")


def _coerce(value):
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    else:
        return None

    if not d.is_finite():
        return None
    return d


def to_money(value, fallback=ZERO) -> Decimal:
    """Coerce to a 2-place Decimal; non-numeric input yields `fallback`."""
    d = _coerce(value)
    if d is None:
        return fallback
    return d.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def to_quantity(value, fallback=Decimal("0")) -> Decimal:
    """Same coercion as to_money(), without rounding."""
    d = _coerce(value)
    if d is None:
        return fallback
    return d


def to_unit_cost(value, fallback=ZERO) -> Decimal:
    """Per-unit cost: 4 places, ROUND_HALF_UP."""
    d = _coerce(value)
    if d is None:
        return fallback
    return d.quantize(COSTPLACES, rounding=ROUND_HALF_UP)
