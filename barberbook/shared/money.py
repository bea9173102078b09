"""Fixed-point currency helpers"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, float, str, None]) -> Decimal:
    """Convert any numeric input to a Decimal rounded to cents"""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        # str() avoids carrying binary float noise into the Decimal
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Union[Decimal, int, float]) -> Decimal:
    """Percentage of an amount, rounded to cents"""
    return to_money(to_money(amount) * Decimal(str(percent)) / Decimal(100))
