"""Line-item amount resolution shared by the summary and the cashflow.

A line item stores a quantity, a rate and a rate type; its money amount is
always derived. Percentage rate types reference totals that themselves come
from other line items, so the totals are resolved in passes:

1. Flat construction items ($ Amount, $/m2, $/Lot) give the construction
   total that "% Construction" items apply to.
2. Every other cost item is resolved against that construction total and the
   GRV (gross sale prices, GST-inclusive).
3. "% Project Costs" items apply to land plus the pass-2 project costs.

Both the summary and the cashflow start from ``build_resolution_context`` and
``resolve_line_item_amount`` so their totals cannot drift apart.
"""

import logging
from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Iterable

from ..models.lookups import (
    DEFAULT_PROJECT_LENGTH_MONTHS,
    FREQUENCY_MONTHS,
    PERCENTAGE_RATE_TYPES,
    SUMMARY_COST_SECTIONS,
    HoldingFrequency,
    LineItemSection,
    RateType,
    as_member,
)
from ..models.scenario import FeasibilitySnapshot, LineItem
from .gst import normalize_to_ex_gst
from .rounding import round_half_ceiling

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolutionContext:
    """Totals a line item's rate may be expressed against."""

    total_land_size: float = 0.0  # m2 across all lots
    lot_count: int = 1  # Never 0, used as a $/Lot multiplier
    construction_total: int = 0  # Flat construction items, ex GST
    grv_total: int = 0  # Gross sale prices, GST-inclusive
    project_costs_total: int = 0  # Land + costs ex funding, before % Project Costs items
    project_length_months: int = DEFAULT_PROJECT_LENGTH_MONTHS


def resolve_line_item_amount(item: LineItem, context: ResolutionContext) -> int:
    """Resolve a line item's ex-GST amount in cents.

    The raw amount is computed from the rate type, rounded to the cent, then
    normalised through the item's own GST status:

    - ``$/m2``: quantity x rate x total land size
    - ``$/Lot``: quantity x rate x lot count
    - ``% Construction``: rate% x construction total x quantity
    - ``% GRV``: rate% x GRV x quantity
    - ``% Project Costs``: rate% x project costs total x quantity
    - ``$ Amount`` and anything unrecognised: quantity x rate

    A quantity of 0 or None counts as 1. Recurring holding costs (any
    frequency other than "once") are then multiplied by the number of
    periods in the item's cashflow span (or the whole project when unset).

    Args:
        item: Line item to resolve.
        context: Totals the percentage and per-area rates refer to.

    Returns:
        Amount ex GST in cents.

    Example:
        >>> item = LineItem(rate_type="$/m2", quantity=1, rate=50, gst_status="exclusive")
        >>> resolve_line_item_amount(item, ResolutionContext(total_land_size=1000))
        50000
    """
    qty = Fraction(item.quantity or 1)
    rate = Fraction(item.rate or 0)
    rate_type = item.rate_type

    if rate_type == RateType.PER_M2:
        base = round_half_ceiling(qty * rate * Fraction(context.total_land_size))
    elif rate_type == RateType.PER_LOT:
        base = round_half_ceiling(qty * rate * context.lot_count)
    elif rate_type == RateType.PCT_CONSTRUCTION:
        base = round_half_ceiling(rate / 100 * context.construction_total * qty)
    elif rate_type == RateType.PCT_GRV:
        base = round_half_ceiling(rate / 100 * context.grv_total * qty)
    elif rate_type == RateType.PCT_PROJECT_COSTS:
        base = round_half_ceiling(rate / 100 * context.project_costs_total * qty)
    else:
        base = round_half_ceiling(qty * rate)

    amount = normalize_to_ex_gst(base, item.gst_status)

    frequency = as_member(HoldingFrequency, item.frequency)
    freq_months = FREQUENCY_MONTHS.get(frequency, 0) if frequency else 0
    if freq_months > 0:
        span = item.cashflow_span_months or context.project_length_months
        amount = round_half_ceiling(Fraction(amount) * Fraction(span) / freq_months)

    return amount


def sum_section(
    items: Iterable[LineItem],
    section: LineItemSection,
    context: ResolutionContext,
) -> int:
    """Sum the resolved amounts of every item in a section."""
    return sum(
        resolve_line_item_amount(item, context)
        for item in items
        if item.section == section
    )


def is_flat_construction_item(item: LineItem) -> bool:
    """True for construction items whose rate does not reference another total."""
    return (
        item.section == LineItemSection.CONSTRUCTION
        and item.rate_type not in PERCENTAGE_RATE_TYPES
    )


def total_land_size(snapshot: FeasibilitySnapshot) -> float:
    """Total land area across all lots, missing sizes counted as 0."""
    return sum(lot.land_size_m2 or 0 for lot in snapshot.land_lots)


def lot_count(snapshot: FeasibilitySnapshot) -> int:
    """Number of lots, or 1 when there are none."""
    return len(snapshot.land_lots) or 1


def gross_revenue(snapshot: FeasibilitySnapshot) -> int:
    """Sum of raw sale prices (GST-inclusive), the basis for % GRV items."""
    return sum(unit.sale_price or 0 for unit in snapshot.sales_units)


def land_cost(snapshot: FeasibilitySnapshot) -> int:
    """Sum of lot purchase prices."""
    return sum(lot.purchase_price or 0 for lot in snapshot.land_lots)


def build_resolution_context(snapshot: FeasibilitySnapshot) -> ResolutionContext:
    """Run the construction and project-cost pre-passes for a snapshot.

    Returns:
        A context in which every rate type of every line item resolves to its
        final amount.
    """
    base_context = ResolutionContext(
        total_land_size=total_land_size(snapshot),
        lot_count=lot_count(snapshot),
        construction_total=0,
        grv_total=gross_revenue(snapshot),
        project_costs_total=0,
        project_length_months=snapshot.project_length_months,
    )

    # Pass 1: flat construction items only
    flat_construction_total = sum(
        resolve_line_item_amount(item, base_context)
        for item in snapshot.line_items
        if is_flat_construction_item(item)
    )
    context = replace(base_context, construction_total=flat_construction_total)

    # Pass 2: project costs before any "% Project Costs" item
    partial_items = [
        item for item in snapshot.line_items
        if item.rate_type != RateType.PCT_PROJECT_COSTS
    ]
    partial_costs = land_cost(snapshot) + sum(
        sum_section(partial_items, section, context)
        for section in SUMMARY_COST_SECTIONS
    )

    logger.debug(
        "Resolution context: flat construction %d, GRV %d, project costs %d",
        flat_construction_total, context.grv_total, partial_costs,
    )
    return replace(context, project_costs_total=partial_costs)
