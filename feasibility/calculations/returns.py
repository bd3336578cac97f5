"""Discounted returns on a monthly net cashflow series."""

import logging
from typing import Sequence

import numpy as np
import numpy_financial as npf

from .rounding import round_half_ceiling

logger = logging.getLogger(__name__)


def calculate_npv(net_flows: Sequence[int], annual_rate_pct: float) -> int:
    """Net present value of monthly flows, in cents.

    Month i (0-based) is discounted by ``(1 + r/12) ** (i + 1)``, so even the
    first month's flow is discounted one period.

    Args:
        net_flows: Net cashflow per month, in cents.
        annual_rate_pct: Annual discount rate as a percentage (e.g., 10).

    Returns:
        Rounded NPV in cents, 0 for an empty series.

    Example:
        >>> calculate_npv([0, 0, 1_010_000], 12)
        980296
    """
    if len(net_flows) == 0:
        return 0
    monthly_rate = (annual_rate_pct or 0) / 100 / 12
    # npf.npv discounts its first value at t=0; a leading zero shifts to t+1
    value = npf.npv(monthly_rate, [0, *net_flows])
    if not np.isfinite(value):
        return 0
    return round_half_ceiling(float(value))


def calculate_irr(net_flows: Sequence[int]) -> float:
    """Annualised IRR of monthly flows, as a percentage.

    The monthly rate solved by ``numpy_financial.irr`` is compounded to an
    annual rate: ``((1 + monthly) ** 12 - 1) * 100``.

    Returns:
        The annual IRR percentage, or 0.0 when the flows have no real IRR
        (no sign change, all zero, or an empty series).
    """
    if len(net_flows) == 0:
        return 0.0
    try:
        monthly_irr = npf.irr(np.asarray(net_flows, dtype=float))
    except (ValueError, np.linalg.LinAlgError):
        logger.debug("IRR solver failed for %d flows", len(net_flows))
        return 0.0
    if monthly_irr is None or not np.isfinite(monthly_irr):
        return 0.0
    annual = ((1 + monthly_irr) ** 12 - 1) * 100
    return float(annual) if np.isfinite(annual) else 0.0
