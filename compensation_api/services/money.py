from __future__ import annotations

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = Decimal("12")


def to_decimal(value) -> Decimal | None:
    """Decimal from int/float/str/Decimal; floats go through str() so 16.67 stays 16.67."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(value) -> Decimal:
    """Currency precision: 2 dp, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(base: Decimal, rate: Decimal) -> Decimal:
    return base * rate / HUNDRED


def cap_money(limit) -> Decimal:
    """A cap at currency precision, rounded down so no rounded amount can exceed it."""
    return to_decimal(limit).quantize(CENT, rounding=ROUND_DOWN)
