"""Cent rounding shared by every monetary calculation."""

import math
from decimal import Decimal
from fractions import Fraction
from typing import Union

Numeric = Union[int, float, Decimal, Fraction]


def round_half_ceiling(value: Numeric) -> int:
    """Round to the nearest integer, halves towards positive infinity.

    Negative halves therefore round up to the smaller magnitude, unlike
    ``decimal.ROUND_HALF_UP`` which rounds them away from zero.

    The value is converted to an exact rational before rounding, so
    ``round_half_ceiling(Fraction(1100) / Fraction(11, 10))`` is exactly 1000 and
    results never depend on binary float artefacts of intermediate steps.

    Example:
        >>> round_half_ceiling(2.5)
        3
        >>> round_half_ceiling(-2.5)
        -2
    """
    return math.floor(Fraction(value) + Fraction(1, 2))


def safe_ratio_pct(numerator: Numeric, denominator: Numeric) -> float:
    """Percentage ``numerator / denominator * 100``, or 0 when the denominator is not positive."""
    if denominator > 0:
        return float(Fraction(numerator) / Fraction(denominator) * 100)
    return 0.0


def per_unit(total: Numeric, count: int) -> int:
    """Rounded ``total / count``, or 0 when there is nothing to divide by."""
    if count > 0:
        return round_half_ceiling(Fraction(total) / count)
    return 0
