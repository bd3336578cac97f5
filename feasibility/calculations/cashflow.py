"""Monthly cashflow projection for a feasibility scenario.

Land payments, line items and sales are placed into month buckets over the
project horizon:

- Land: deposit at its month, each scheduled payment at its month, and the
  remaining balance (never negative) at settlement.
- Line items: resolved exactly as the summary resolves them, then spread
  evenly as ``round(amount / span)`` per month from the start month.
- Sales: normalised ex GST and recognised in full at settlement, or in the
  final month when no settlement month is set.

Months are 1-based on the way in and 0-based buckets internally. A placement
that lands beyond the horizon is dropped; ``project_cashflow`` reports every
drop so callers can surface it.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from fractions import Fraction
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ..models.lookups import (
    CASHFLOW_COLUMNS,
    CASHFLOW_SECTIONS,
    FUNDING_SECTIONS,
    LineItemSection,
    as_member,
)
from ..models.scenario import FeasibilitySnapshot
from .gst import normalize_to_ex_gst
from .resolution import build_resolution_context, resolve_line_item_amount
from .rounding import round_half_ceiling

logger = logging.getLogger(__name__)

# Cost columns of a cashflow month, in display order
COST_COLUMNS = tuple(dict.fromkeys(CASHFLOW_COLUMNS.values()))
FUNDING_COLUMNS = tuple(dict.fromkeys(CASHFLOW_COLUMNS[s] for s in FUNDING_SECTIONS))


class CashflowPlacementError(ValueError):
    """Raised in strict mode when an amount falls outside the project horizon."""


@dataclass
class CashflowMonth:
    """Single month of the projected cashflow. Amounts in cents."""
    month: int  # 1-indexed
    label: str  # e.g. "Jan 2026"
    revenue: int = 0
    land_cost: int = 0
    acquisition_costs: int = 0
    professional_fees: int = 0
    construction_costs: int = 0
    dev_fees: int = 0
    land_holding_costs: int = 0
    contingency_costs: int = 0
    marketing_costs: int = 0
    agent_fees: int = 0
    legal_fees: int = 0
    funding_costs: int = 0  # Facility, loan and equity fees combined
    total_costs: int = 0
    net_cashflow: int = 0
    cumulative_cashflow: int = 0


@dataclass(frozen=True)
class DroppedEntry:
    """An amount that could not be placed because its month is past the horizon."""

    source_kind: str  # "land_deposit", "land_payment", "land_settlement", "line_item", "sale"
    source_name: str
    month: int  # 1-indexed month requested
    amount: int


@dataclass
class CashflowProjection:
    """Projected months plus every placement that fell outside the horizon."""
    months: List[CashflowMonth]
    dropped: List[DroppedEntry] = field(default_factory=list)

    @property
    def total_months(self) -> int:
        return len(self.months)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped)

    @property
    def net_cashflows(self) -> List[int]:
        return [m.net_cashflow for m in self.months]

    @property
    def labels(self) -> List[str]:
        return [m.label for m in self.months]

    def get_month(self, month: int) -> CashflowMonth:
        """Get a month of the projection (1-indexed)."""
        if month < 1 or month > len(self.months):
            raise IndexError(f"Month {month} out of range [1, {len(self.months)}]")
        return self.months[month - 1]


def month_labels(start: date, total_months: int) -> List[str]:
    """Labels such as "Jan 2026" for each month from the start date."""
    first = start.replace(day=1)
    return [(first + relativedelta(months=i)).strftime("%b %Y") for i in range(total_months)]


class _Placer:
    """Writes amounts into month buckets and records what does not fit."""

    def __init__(self, months: List[CashflowMonth], strict: bool):
        self.months = months
        self.strict = strict
        self.dropped: List[DroppedEntry] = []

    def place(self, column: str, index: int, amount: int, kind: str, name: str) -> None:
        if index < len(self.months):
            bucket = self.months[index]
            setattr(bucket, column, getattr(bucket, column) + amount)
        elif amount:
            self.drop(DroppedEntry(kind, name, index + 1, amount))

    def drop(self, entry: DroppedEntry) -> None:
        if self.strict:
            raise CashflowPlacementError(
                f"{entry.source_kind} '{entry.source_name}' of {entry.amount} cents "
                f"falls in month {entry.month}, beyond the {len(self.months)}-month horizon"
            )
        logger.warning(
            "Dropped %s '%s': %d cents in month %d is beyond the %d-month horizon",
            entry.source_kind, entry.source_name, entry.amount, entry.month, len(self.months),
        )
        self.dropped.append(entry)


def _bucket_index(month: Optional[int]) -> int:
    """0-based bucket for a 1-based month; missing means month 1."""
    return max(0, (month or 1) - 1)


def project_cashflow(snapshot: FeasibilitySnapshot, strict: bool = False) -> CashflowProjection:
    """Project a scenario's costs and revenue onto a monthly timeline.

    Args:
        snapshot: Fully loaded scenario.
        strict: If True, raise instead of dropping amounts that fall beyond
            the project horizon.

    Returns:
        CashflowProjection with ``project_length_months`` months (24 when
        unset) and the list of dropped placements.

    Raises:
        CashflowPlacementError: In strict mode, on the first dropped placement.

    Example:
        >>> projection = project_cashflow(snapshot)
        >>> projection.months[-1].cumulative_cashflow == sum(projection.net_cashflows)
        True
    """
    total_months = snapshot.project_length_months
    start = snapshot.scenario.start_date or date.today()
    labels = month_labels(start, total_months)
    months = [CashflowMonth(month=i + 1, label=labels[i]) for i in range(total_months)]
    placer = _Placer(months, strict)

    context = build_resolution_context(snapshot)

    # Land: deposit, progress payments, balance at settlement
    for lot in snapshot.land_lots:
        deposit = lot.deposit_amount or 0
        placer.place("land_cost", _bucket_index(lot.deposit_month), deposit, "land_deposit", lot.name)

        scheduled_total = 0
        for payment in lot.payment_schedule:
            amount = payment.amount or 0
            scheduled_total += amount
            placer.place("land_cost", _bucket_index(payment.month), amount, "land_payment", lot.name)

        balance = max(0, (lot.purchase_price or 0) - deposit - scheduled_total)
        if balance > 0:
            placer.place(
                "land_cost", _bucket_index(lot.settlement_month), balance, "land_settlement", lot.name
            )

    # Line items: even spread from the start month
    for item in snapshot.line_items:
        section = as_member(LineItemSection, item.section)
        if section not in CASHFLOW_SECTIONS:
            continue
        column = CASHFLOW_COLUMNS[section]

        amount = resolve_line_item_amount(item, context)
        start_index = _bucket_index(item.cashflow_start_month)
        span = max(1, item.cashflow_span_months or 1)
        per_month = round_half_ceiling(Fraction(amount, span))

        end_index = min(start_index + span, total_months)
        for index in range(start_index, end_index):
            bucket = months[index]
            setattr(bucket, column, getattr(bucket, column) + per_month)

        placed = max(0, end_index - start_index)
        if placed < span and per_month:
            first_dropped = start_index + placed + 1
            placer.drop(DroppedEntry("line_item", item.name, first_dropped, per_month * (span - placed)))

    # Sales: recognised in full at settlement
    for unit in snapshot.sales_units:
        revenue = normalize_to_ex_gst(unit.sale_price or 0, unit.gst_status)
        if unit.settlement_month:
            index = _bucket_index(unit.settlement_month)
        else:
            index = total_months - 1
        placer.place("revenue", index, revenue, "sale", unit.name)

    cumulative = 0
    for bucket in months:
        bucket.total_costs = bucket.land_cost + sum(getattr(bucket, c) for c in COST_COLUMNS)
        bucket.net_cashflow = bucket.revenue - bucket.total_costs
        cumulative += bucket.net_cashflow
        bucket.cumulative_cashflow = cumulative

    if placer.dropped:
        logger.info("Cashflow projected with %d dropped placements", len(placer.dropped))
    return CashflowProjection(months=months, dropped=placer.dropped)


def generate_cashflow(snapshot: FeasibilitySnapshot) -> List[CashflowMonth]:
    """Monthly cashflow rows for a scenario, dropping out-of-horizon amounts."""
    return project_cashflow(snapshot).months


def monthly_project_costs(months: Sequence[CashflowMonth]) -> List[int]:
    """Per-month costs that need funding: land plus every non-funding column."""
    non_funding = [c for c in COST_COLUMNS if c not in FUNDING_COLUMNS]
    return [
        month.land_cost + sum(getattr(month, c) for c in non_funding)
        for month in months
    ]
