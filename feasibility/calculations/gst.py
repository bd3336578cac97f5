"""GST normalisation (simplified Australian GST model).

Every conversion between GST-inclusive, GST-exclusive and GST-exempt amounts
goes through this module so the summary and cashflow paths agree to the cent.
"""

from fractions import Fraction
from typing import Union

from ..models.lookups import GST_RATE, GstStatus
from .rounding import round_half_ceiling

# Exact 1 + GST_RATE (11/10 for 10% GST)
_GST_FACTOR = 1 + Fraction(str(GST_RATE))
_GST_FRACTION = Fraction(str(GST_RATE))
# Share of a GST-inclusive margin that is GST (1/11 for 10% GST)
_MARGIN_SCHEME_DIVISOR = _GST_FACTOR / _GST_FRACTION

Amount = Union[int, float]


def normalize_to_ex_gst(amount: Amount, gst_status: Union[GstStatus, str, None]) -> int:
    """Convert an amount to its GST-exclusive equivalent.

    Inclusive amounts are divided by 1.10 and rounded to the nearest cent.
    Exclusive and exempt amounts are returned unchanged (rounded to whole cents).

    Example:
        >>> normalize_to_ex_gst(110_000, "inclusive")
        100000
        >>> normalize_to_ex_gst(110_000, "exempt")
        110000
    """
    if gst_status == GstStatus.INCLUSIVE:
        return round_half_ceiling(Fraction(amount) / _GST_FACTOR)
    return round_half_ceiling(amount)


def calculate_gst(amount_ex_gst: Amount, gst_status: Union[GstStatus, str, None]) -> int:
    """GST component payable on an ex-GST amount (0 when exempt)."""
    if gst_status == GstStatus.EXEMPT:
        return 0
    return round_half_ceiling(Fraction(amount_ex_gst) * _GST_FRACTION)


def add_gst(amount_ex_gst: Amount, gst_status: Union[GstStatus, str, None] = GstStatus.EXCLUSIVE) -> int:
    """Gross an ex-GST amount up to its GST-inclusive equivalent."""
    return round_half_ceiling(amount_ex_gst) + calculate_gst(amount_ex_gst, gst_status)


def margin_scheme_gst(sale_price: Amount, purchase_price: Amount) -> int:
    """GST under the margin scheme: one eleventh of the margin, 0 if no margin.

    Example:
        >>> margin_scheme_gst(1_100_000, 550_000)
        50000
    """
    margin = Fraction(sale_price) - Fraction(purchase_price)
    if margin <= 0:
        return 0
    return round_half_ceiling(margin / _MARGIN_SCHEME_DIVISOR)
