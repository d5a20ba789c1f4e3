"""
Decimal helpers for monetary amounts.

Amounts are kept with 4 fractional digits internally and shown with 2.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

INTERNAL_PRECISION = Decimal("0.0001")
PRESENTATION_PRECISION = Decimal("0.01")

# Absorbs split rounding, e.g. an odd cent shared by three people
MONEY_TOLERANCE = Decimal("0.01")


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a number to Decimal without picking up binary float noise"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_decimal(value: Decimal, precision: Decimal = INTERNAL_PRECISION) -> Decimal:
    """
    Round a Decimal value to the specified precision (half up).

    Example:
        >>> round_decimal(Decimal("33.333333"))
        Decimal('33.3333')
        >>> round_decimal(Decimal("0.125"), Decimal("0.01"))
        Decimal('0.13')
    """
    return value.quantize(precision, rounding=ROUND_HALF_UP)


def present_amount(value: Decimal) -> Decimal:
    """Round an amount for display"""
    return round_decimal(value, PRESENTATION_PRECISION)
