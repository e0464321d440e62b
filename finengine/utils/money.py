"""Integer-cents arithmetic and the single rounding rule shared by every calculator.

Amounts are plain ``int`` cents. Rates are percent-as-number (``7.25`` means
7.25%) carried as ``Decimal``. Intermediate products are computed in
``Decimal`` and brought back to cents with :func:`round_cents`
(ROUND_HALF_UP), so the same inputs always produce the same cents.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, getcontext
from typing import Union

getcontext().prec = 28

Number = Union[int, str, Decimal]

CENTS_PER_DOLLAR = 100
MONTHS_PER_YEAR = 12
_ONE = Decimal(1)
_HUNDRED = Decimal(100)
_TWO_PLACES = Decimal("0.01")


def _d(x) -> Decimal:
    if isinstance(x, Decimal):
        return x
    return Decimal(str(x))


def round_cents(value: Number) -> int:
    """Round a Decimal amount of cents to a whole cent, half away from zero."""
    return int(_d(value).to_integral_value(rounding=ROUND_HALF_UP))


def round_percent(value: Number) -> Decimal:
    return _d(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def assert_cents(value: object, name: str = "value") -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be integer cents, got {type(value).__name__}")
    return value


def monthly_rate(annual_rate_percent: Number) -> Decimal:
    """annual% / 12 / 100"""
    return _d(annual_rate_percent) / Decimal(MONTHS_PER_YEAR) / _HUNDRED


def percent_of(amount_cents: int, percent: Number) -> int:
    return round_cents(Decimal(amount_cents) * _d(percent) / _HUNDRED)


def apply_rate(amount_cents: int, rate: Decimal) -> int:
    """round(amount * rate) for a per-period rate already divided down."""
    return round_cents(Decimal(amount_cents) * rate)


def grow(amount_cents: int, rate: Decimal) -> int:
    """round(amount * (1 + rate))"""
    return round_cents(Decimal(amount_cents) * (_ONE + rate))


def ratio_percent(numerator_cents: int, denominator_cents: int) -> Decimal:
    """numerator / denominator * 100 rounded to 2 dp; 0 when the denominator is 0."""
    if denominator_cents == 0:
        return Decimal("0.00")
    return round_percent(Decimal(numerator_cents) / Decimal(denominator_cents) * _HUNDRED)


# -------------------------
# Presentation boundary
# -------------------------

def cents_to_dollars(amount_cents: int) -> str:
    """1299 -> "12.99"; always two decimals, never a float."""
    assert_cents(amount_cents, "amount_cents")
    return str((Decimal(amount_cents) / Decimal(CENTS_PER_DOLLAR)).quantize(_TWO_PLACES))


def dollars_to_cents(dollars: Number) -> int:
    """ "12.995" -> 1300 (half-up). Commas are ignored."""
    raw = dollars.replace(",", "").strip() if isinstance(dollars, str) else dollars
    return round_cents(_d(raw) * CENTS_PER_DOLLAR)
