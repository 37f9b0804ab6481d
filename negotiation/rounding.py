"""Half-up rounding on exact decimal values.

Python's ``round`` rounds halves to even and works on the binary value, so
6.95 (stored as 6.9499...) becomes 6.9. Scores here round halves up, toward
positive infinity, on the decimal value.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Union

Number = Union[int, float, Decimal]

_HALF = Decimal("0.5")


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value: Number, ndigits: int = 0) -> Union[int, float]:
    """Round ``value`` to ``ndigits`` places, halves toward +inf; int when ndigits is 0."""
    step = Decimal(1).scaleb(-ndigits)
    scaled = (to_decimal(value) / step + _HALF).to_integral_value(rounding=ROUND_FLOOR)
    if ndigits == 0:
        return int(scaled)
    return float(scaled * step)
