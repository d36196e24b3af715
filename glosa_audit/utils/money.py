"""
Money helpers. All amounts are Decimal with two places, rounded half up.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, str, None]) -> Decimal:
    """Quantize a value to cents. None is treated as zero."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_money(value: Decimal, currency: str = "COP") -> str:
    """Human readable amount used in step results, e.g. '$70,000.00 COP'."""
    return f"${to_money(value):,.2f} {currency}"
