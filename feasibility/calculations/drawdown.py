"""Drawdown engine: month-by-month drawn balance and interest per facility."""

from dataclasses import dataclass, field
from fractions import Fraction
from typing import List, Optional, Sequence

from ..models.lookups import (
    FACILITY_PRIORITY_ORDER,
    UNRANKED_PRIORITY,
    FacilityPriority,
    LandLoanType,
    as_member,
)
from .rounding import round_half_ceiling


@dataclass(frozen=True)
class ResolvedFacility:
    """A debt facility with its size already resolved (manual or LVR-based)."""

    name: str
    size: int  # cents
    interest_rate: float  # annual, percent
    land_loan_type: str = LandLoanType.PROVISIONED
    priority: str = FacilityPriority.SENIOR
    sort_order: int = 0


@dataclass
class DrawdownMonth:
    """Single month of a facility's drawdown schedule."""
    month: int  # 1-indexed
    label: str
    costs_drawn: int
    interest_accrued: int
    capitalised: int  # Interest added to the drawn balance this month
    cumulative_drawn: int  # Drawn balance at end of month
    available_balance: int  # Headroom left under the facility limit


@dataclass
class FacilityDrawdown:
    """Complete drawdown schedule for one facility."""
    facility_name: str
    facility_size: int
    interest_rate: float
    land_loan_type: str
    months: List[DrawdownMonth] = field(default_factory=list)
    total_interest: int = 0
    peak_drawn: int = 0

    def get_month(self, month: int) -> DrawdownMonth:
        """Get the drawdown row for a specific month (1-indexed)."""
        if month < 1 or month > len(self.months):
            raise IndexError(f"Month {month} out of range [1, {len(self.months)}]")
        return self.months[month - 1]


def _priority_rank(facility: ResolvedFacility) -> int:
    priority = as_member(FacilityPriority, facility.priority)
    if priority is None:
        return UNRANKED_PRIORITY
    return FACILITY_PRIORITY_ORDER.get(priority, UNRANKED_PRIORITY)


def compute_drawdowns(
    facilities: Sequence[ResolvedFacility],
    monthly_costs: Sequence[int],
    month_labels: Optional[Sequence[str]] = None,
) -> List[FacilityDrawdown]:
    """Compute the month-by-month drawdown schedule of each facility.

    Key logic:
    1. Facilities draw in priority order (senior, mezzanine, junior, then
       unranked), ties broken by sort order
    2. Each month's costs are drawn from a facility up to its remaining
       headroom; whatever is left falls through to the next facility
    3. Interest accrues on the drawn balance after the month's draw
    4. Provisioned facilities capitalise that interest into the balance,
       never beyond the facility limit; serviced facilities do not

    Args:
        facilities: Facilities with resolved sizes.
        monthly_costs: Costs to fund per month, in cents.
        month_labels: Optional display label per month; defaults to "M1", "M2", ...

    Returns:
        One FacilityDrawdown per facility, in draw order. Empty if there are
        no facilities or no months.

    Example:
        >>> senior = ResolvedFacility(name="Senior", size=100_000, interest_rate=12)
        >>> [dd] = compute_drawdowns([senior], [60_000, 60_000])
        >>> [m.costs_drawn for m in dd.months]
        [60000, 39400]
    """
    if not facilities or not monthly_costs:
        return []

    ordered = sorted(facilities, key=lambda f: (_priority_rank(f), f.sort_order))
    remaining = list(monthly_costs)
    results: List[FacilityDrawdown] = []

    for facility in ordered:
        size = facility.size or 0
        monthly_rate = Fraction(facility.interest_rate or 0) / 100 / 12
        provisioned = facility.land_loan_type == LandLoanType.PROVISIONED

        cumulative = 0
        total_interest = 0
        peak = 0
        months: List[DrawdownMonth] = []

        for i, _ in enumerate(monthly_costs):
            headroom = max(0, size - cumulative)
            drawn = min(max(0, remaining[i]), headroom)
            remaining[i] -= drawn
            cumulative += drawn

            interest = round_half_ceiling(cumulative * monthly_rate)
            total_interest += interest

            capitalised = 0
            if provisioned and interest > 0:
                capitalised = min(interest, max(0, size - cumulative))
                cumulative += capitalised

            peak = max(peak, cumulative)

            label = month_labels[i] if month_labels and i < len(month_labels) else f"M{i + 1}"
            months.append(DrawdownMonth(
                month=i + 1,
                label=label,
                costs_drawn=drawn,
                interest_accrued=interest,
                capitalised=capitalised,
                cumulative_drawn=cumulative,
                available_balance=max(0, size - cumulative),
            ))

        results.append(FacilityDrawdown(
            facility_name=facility.name,
            facility_size=size,
            interest_rate=facility.interest_rate or 0,
            land_loan_type=facility.land_loan_type,
            months=months,
            total_interest=total_interest,
            peak_drawn=peak,
        ))

    return results
