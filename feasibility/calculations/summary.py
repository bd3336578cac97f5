"""Feasibility summary: the profit-and-loss position of a scenario.

Every figure is recomputed from the snapshot on each call. Line items are
resolved through ``build_resolution_context`` and ``resolve_line_item_amount``,
the same path the cashflow projection uses, so section totals here and the
projected monthly columns always agree.
"""

import logging
from dataclasses import dataclass, field
from fractions import Fraction
from typing import List, Optional

from ..models.lookups import (
    CASHFLOW_SECTIONS,
    DEFAULT_DISCOUNT_RATE_PCT,
    DEFAULT_TARGET_MARGIN_PCT,
    DEFAULT_TAX_RATE_PCT,
    CalculationType,
    GstStatus,
    LineItemSection,
    LvrMethod,
    as_member,
)
from ..models.scenario import DebtFacility, DebtLoan, FeasibilitySnapshot
from .cashflow import CashflowProjection, monthly_project_costs, project_cashflow
from .drawdown import FacilityDrawdown, ResolvedFacility, compute_drawdowns
from .gst import add_gst, calculate_gst, normalize_to_ex_gst
from .resolution import (
    build_resolution_context,
    gross_revenue,
    land_cost,
    resolve_line_item_amount,
    sum_section,
)
from .returns import calculate_irr, calculate_npv
from .rounding import per_unit, round_half_ceiling, safe_ratio_pct
from .trace import trace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FacilityCalcContext:
    """Totals an auto-sized facility's LVR percentage can apply to."""

    total_revenue_ex_gst: int = 0
    total_revenue: int = 0
    total_costs_ex_funding: int = 0
    construction_costs: int = 0
    contingency_costs: int = 0


def resolve_facility_size(facility: DebtFacility, ctx: FacilityCalcContext) -> int:
    """Facility limit in cents.

    Manual facilities use ``total_facility`` as entered. Auto facilities are
    sized as ``round(base x lvr_pct / 100)`` where the base is picked by the
    LVR method:

    - ``grv_ex_gst`` / ``grv_inc_gst``: revenue ex GST / raw sale prices
    - ``tdc_ex_gst`` / ``tdc_inc_gst``: total costs ex funding
    - ``tcc_ex_gst`` / ``tcc_inc_gst``: construction costs
    - ``tcc_cont_ex_gst`` / ``tcc_cont_inc_gst``: construction plus contingency

    ``*_inc_gst`` cost bases are grossed up by GST. An unrecognised method
    falls back to ``tdc_ex_gst``.

    Example:
        >>> facility = DebtFacility(calculation_type="auto", lvr_method="tcc_ex_gst", lvr_pct=80)
        >>> resolve_facility_size(facility, FacilityCalcContext(construction_costs=1_000_000))
        800000
    """
    if facility.calculation_type != CalculationType.AUTO:
        return facility.total_facility or 0

    method = as_member(LvrMethod, facility.lvr_method)
    construction_and_contingency = ctx.construction_costs + ctx.contingency_costs

    if method == LvrMethod.GRV_EX_GST:
        base = ctx.total_revenue_ex_gst
    elif method == LvrMethod.GRV_INC_GST:
        base = ctx.total_revenue
    elif method == LvrMethod.TDC_INC_GST:
        base = add_gst(ctx.total_costs_ex_funding)
    elif method == LvrMethod.TCC_EX_GST:
        base = ctx.construction_costs
    elif method == LvrMethod.TCC_INC_GST:
        base = add_gst(ctx.construction_costs)
    elif method == LvrMethod.TCC_CONT_EX_GST:
        base = construction_and_contingency
    elif method == LvrMethod.TCC_CONT_INC_GST:
        base = add_gst(construction_and_contingency)
    else:
        base = ctx.total_costs_ex_funding

    return round_half_ceiling(Fraction(base) * Fraction(facility.lvr_pct or 0) / 100)


def loan_interest(loan: DebtLoan) -> int:
    """Simple interest over the full term: ``principal x rate / 100 / 12 x term_months``."""
    monthly_rate = Fraction(loan.interest_rate or 0) / 100 / 12
    return round_half_ceiling(Fraction(loan.principal_amount or 0) * monthly_rate * (loan.term_months or 0))


@dataclass
class GstPosition:
    """GST collected on sales against GST paid on costs. Amounts in cents."""
    gst_on_sales: int = 0
    gst_on_costs: int = 0
    net_gst_payable: int = 0


def summarise_gst(snapshot: FeasibilitySnapshot) -> GstPosition:
    """GST on sales, GST on line-item costs and the net amount payable.

    Line items are re-resolved rather than read from their stored
    ``amount_ex_gst``. Land purchases are left out of the position.
    """
    gst_on_sales = 0
    for unit in snapshot.sales_units:
        price = unit.sale_price or 0
        ex_gst = normalize_to_ex_gst(price, unit.gst_status)
        if unit.gst_status == GstStatus.INCLUSIVE:
            gst_on_sales += round_half_ceiling(price) - ex_gst
        else:
            gst_on_sales += calculate_gst(ex_gst, unit.gst_status)

    context = build_resolution_context(snapshot)
    gst_on_costs = sum(
        calculate_gst(resolve_line_item_amount(item, context), item.gst_status)
        for item in snapshot.line_items
        if as_member(LineItemSection, item.section) in CASHFLOW_SECTIONS
    )

    return GstPosition(
        gst_on_sales=gst_on_sales,
        gst_on_costs=gst_on_costs,
        net_gst_payable=gst_on_sales - gst_on_costs,
    )


@dataclass
class FeasibilitySummary:
    """Aggregated totals and ratios of one scenario.

    Money in cents, ratios in percent.
    """
    # Revenue
    total_revenue: int = 0  # Raw sale prices, GST-inclusive
    total_revenue_ex_gst: int = 0
    net_sales_revenue: int = 0  # Revenue ex GST less agent and legal fees
    unit_count: int = 0

    # Land
    total_land_size: float = 0.0
    lot_count: int = 1
    land_cost: int = 0

    # Cost sections
    acquisition_costs: int = 0
    professional_fees: int = 0
    construction_costs: int = 0
    dev_fees: int = 0
    land_holding_costs: int = 0
    contingency_costs: int = 0
    agent_fees: int = 0
    legal_fees: int = 0
    marketing_costs: int = 0  # Reported only, not part of any total

    # Funding
    facility_fees: int = 0
    loan_fees: int = 0
    equity_fees: int = 0
    total_debt_interest: int = 0
    total_debt: int = 0
    total_equity: int = 0
    total_preferred_equity: int = 0
    total_developer_equity: int = 0

    # Totals
    total_costs_ex_funding: int = 0
    total_funding_costs: int = 0
    total_costs: int = 0
    project_costs_to_fund: int = 0

    # Profit
    profit: int = 0
    profit_on_cost: float = 0.0
    development_margin: float = 0.0  # profit / revenue ex GST
    profit_margin: float = 0.0
    profit_on_project_cost: float = 0.0  # profit / costs ex funding

    # Per unit
    revenue_per_unit: int = 0  # GST-inclusive revenue, unlike profit
    cost_per_unit: int = 0
    profit_per_unit: int = 0

    # Per m2 of saleable area and per lot
    total_saleable_area: float = 0.0
    ave_net_sales_per_m2: int = 0
    ave_net_sales_per_lot: int = 0
    ave_construction_per_m2: int = 0
    ave_construction_per_lot: int = 0

    # Leverage
    ordinary_equity_leverage_pct: float = 0.0
    preferred_equity_leverage_pct: float = 0.0
    debt_leverage_pct: float = 0.0
    debt_to_cost_ratio: float = 0.0  # LTC
    debt_to_grv_ratio: float = 0.0  # LVR

    # After tax
    ebit: int = 0
    profit_before_tax: int = 0
    tax_amount: int = 0
    profit_after_tax: int = 0

    # Returns on the monthly cashflow
    npv: int = 0
    irr: float = 0.0

    # Residual land value
    residual_land_value: int = 0
    residual_land_value_at_target: int = 0

    facility_drawdowns: List[FacilityDrawdown] = field(default_factory=list)


def compute_summary(
    snapshot: FeasibilitySnapshot,
    projection: Optional[CashflowProjection] = None,
) -> FeasibilitySummary:
    """Compute the full profit-and-loss summary of a scenario.

    Key logic:
    1. Resolve every line item against the shared resolution context
       (flat construction total, GRV, project costs)
    2. Sum sections into costs ex funding; marketing is reported but left out
    3. Size facilities (manual or by LVR) and total the debt interest: stored
       provisions for manual facilities, the drawdown schedule for auto ones,
       simple interest for loans
    4. Derive profit, margins, per-unit figures, leverage, tax, residual land
       value, and NPV/IRR of the monthly cashflow

    Args:
        snapshot: Fully loaded scenario.
        projection: Cashflow projection of the same snapshot, if the caller
            already has one; computed otherwise.

    Returns:
        FeasibilitySummary. Never raises: every ratio is guarded and missing
        numbers count as 0.

    Example:
        >>> summary = compute_summary(snapshot)
        >>> summary.profit == summary.total_revenue_ex_gst - summary.total_costs
        True
    """
    scenario = snapshot.scenario
    context = build_resolution_context(snapshot)
    items = snapshot.line_items

    # Revenue
    total_revenue = gross_revenue(snapshot)
    total_revenue_ex_gst = sum(
        normalize_to_ex_gst(unit.sale_price or 0, unit.gst_status)
        for unit in snapshot.sales_units
    )
    unit_count = len(snapshot.sales_units)
    land = land_cost(snapshot)

    # Cost sections
    acquisition_costs = sum_section(items, LineItemSection.ACQUISITION, context)
    professional_fees = sum_section(items, LineItemSection.PROFESSIONAL_FEES, context)
    construction_costs = sum_section(items, LineItemSection.CONSTRUCTION, context)
    dev_fees = sum_section(items, LineItemSection.DEV_FEES, context)
    land_holding_costs = sum_section(items, LineItemSection.LAND_HOLDING, context)
    contingency_costs = sum_section(items, LineItemSection.CONTINGENCY, context)
    agent_fees = sum_section(items, LineItemSection.AGENT_FEES, context)
    legal_fees = sum_section(items, LineItemSection.LEGAL_FEES, context)
    marketing_costs = sum_section(items, LineItemSection.MARKETING, context)

    facility_fees = sum_section(items, LineItemSection.FACILITY_FEES, context)
    loan_fees = sum_section(items, LineItemSection.LOAN_FEES, context)
    equity_fees = sum_section(items, LineItemSection.EQUITY_FEES, context)

    total_costs_ex_funding = (
        land + acquisition_costs + professional_fees + construction_costs + dev_fees
        + land_holding_costs + contingency_costs + agent_fees + legal_fees
    )

    # Debt sizing and interest
    facility_ctx = FacilityCalcContext(
        total_revenue_ex_gst=total_revenue_ex_gst,
        total_revenue=total_revenue,
        total_costs_ex_funding=total_costs_ex_funding,
        construction_costs=construction_costs,
        contingency_costs=contingency_costs,
    )
    sizes = [resolve_facility_size(f, facility_ctx) for f in snapshot.debt_facilities]
    total_debt = sum(sizes)

    if projection is None:
        projection = project_cashflow(snapshot)

    auto_facilities = [
        ResolvedFacility(
            name=f.name,
            size=size,
            interest_rate=f.interest_rate or 0,
            land_loan_type=f.land_loan_type,
            priority=f.priority,
            sort_order=f.sort_order,
        )
        for f, size in zip(snapshot.debt_facilities, sizes)
        if f.calculation_type == CalculationType.AUTO
    ]
    drawdowns = compute_drawdowns(
        auto_facilities, monthly_project_costs(projection.months), projection.labels
    )

    manual_interest = sum(
        f.interest_provision or 0
        for f in snapshot.debt_facilities
        if f.calculation_type != CalculationType.AUTO
    )
    total_debt_interest = (
        manual_interest
        + sum(dd.total_interest for dd in drawdowns)
        + sum(loan_interest(loan) for loan in snapshot.debt_loans)
    )

    # Equity
    total_preferred_equity = sum(
        p.equity_amount or 0 for p in snapshot.equity_partners if not p.is_developer_equity
    )
    total_developer_equity = sum(
        p.equity_amount or 0 for p in snapshot.equity_partners if p.is_developer_equity
    )
    total_equity = total_preferred_equity + total_developer_equity

    # Totals and profit
    total_funding_costs = facility_fees + loan_fees + equity_fees + total_debt_interest
    total_costs = total_costs_ex_funding + total_funding_costs
    profit = total_revenue_ex_gst - total_costs
    net_sales_revenue = total_revenue_ex_gst - agent_fees - legal_fees

    # Averages
    total_saleable_area = sum(unit.area_m2 or 0 for unit in snapshot.sales_units)
    project_lots = scenario.project_lots or unit_count or 1

    def per_m2(total: int) -> int:
        if total_saleable_area > 0:
            return round_half_ceiling(Fraction(total) / Fraction(total_saleable_area))
        return 0

    # Tax and residual land value
    tax_rate = scenario.tax_rate if scenario.tax_rate is not None else DEFAULT_TAX_RATE_PCT
    tax_amount = round_half_ceiling(Fraction(profit) * Fraction(tax_rate) / 100) if profit > 0 else 0
    target_margin = (
        scenario.target_margin_pct
        if scenario.target_margin_pct is not None
        else DEFAULT_TARGET_MARGIN_PCT
    )
    target_revenue = round_half_ceiling(
        Fraction(total_revenue_ex_gst) * (1 - Fraction(target_margin) / 100)
    )
    discount_rate = (
        scenario.discount_rate if scenario.discount_rate is not None else DEFAULT_DISCOUNT_RATE_PCT
    )

    summary = FeasibilitySummary(
        total_revenue=total_revenue,
        total_revenue_ex_gst=total_revenue_ex_gst,
        net_sales_revenue=net_sales_revenue,
        unit_count=unit_count,
        total_land_size=context.total_land_size,
        lot_count=context.lot_count,
        land_cost=land,
        acquisition_costs=acquisition_costs,
        professional_fees=professional_fees,
        construction_costs=construction_costs,
        dev_fees=dev_fees,
        land_holding_costs=land_holding_costs,
        contingency_costs=contingency_costs,
        agent_fees=agent_fees,
        legal_fees=legal_fees,
        marketing_costs=marketing_costs,
        facility_fees=facility_fees,
        loan_fees=loan_fees,
        equity_fees=equity_fees,
        total_debt_interest=total_debt_interest,
        total_debt=total_debt,
        total_equity=total_equity,
        total_preferred_equity=total_preferred_equity,
        total_developer_equity=total_developer_equity,
        total_costs_ex_funding=total_costs_ex_funding,
        total_funding_costs=total_funding_costs,
        total_costs=total_costs,
        project_costs_to_fund=total_costs_ex_funding,
        profit=profit,
        profit_on_cost=safe_ratio_pct(profit, total_costs),
        development_margin=safe_ratio_pct(profit, total_revenue_ex_gst),
        profit_margin=safe_ratio_pct(profit, total_revenue_ex_gst),
        profit_on_project_cost=safe_ratio_pct(profit, total_costs_ex_funding),
        # Per-unit revenue stays GST-inclusive while profit is ex GST
        revenue_per_unit=per_unit(total_revenue, unit_count),
        cost_per_unit=per_unit(total_costs, unit_count),
        profit_per_unit=per_unit(profit, unit_count),
        total_saleable_area=total_saleable_area,
        ave_net_sales_per_m2=per_m2(net_sales_revenue),
        ave_net_sales_per_lot=per_unit(net_sales_revenue, project_lots),
        ave_construction_per_m2=per_m2(construction_costs),
        ave_construction_per_lot=per_unit(construction_costs, project_lots),
        ordinary_equity_leverage_pct=safe_ratio_pct(total_developer_equity, total_costs_ex_funding),
        preferred_equity_leverage_pct=safe_ratio_pct(total_preferred_equity, total_costs_ex_funding),
        debt_leverage_pct=safe_ratio_pct(total_debt, total_costs_ex_funding),
        debt_to_cost_ratio=safe_ratio_pct(total_debt, total_costs),
        debt_to_grv_ratio=safe_ratio_pct(total_debt, total_revenue_ex_gst),
        ebit=total_revenue_ex_gst - total_costs_ex_funding,
        profit_before_tax=profit,
        tax_amount=tax_amount,
        profit_after_tax=profit - tax_amount,
        npv=calculate_npv(projection.net_cashflows, discount_rate),
        irr=calculate_irr(projection.net_cashflows),
        residual_land_value=total_revenue_ex_gst - (total_costs - land),
        residual_land_value_at_target=target_revenue - (total_costs - land),
        facility_drawdowns=drawdowns,
    )

    _trace_summary(summary, context, tax_rate, target_margin, discount_rate)
    logger.debug(
        "Summary for %s: revenue ex GST %d, total costs %d, profit %d",
        scenario.name, total_revenue_ex_gst, total_costs, profit,
    )
    return summary


def _trace_summary(s: FeasibilitySummary, context, tax_rate, target_margin, discount_rate) -> None:
    """Record the headline figures with the values they were computed from."""
    trace("inputs.total_land_size", s.total_land_size, {})
    trace("inputs.lot_count", s.lot_count, {})
    trace("inputs.unit_count", s.unit_count, {})
    trace("inputs.construction_total", context.construction_total, {})
    trace("inputs.grv_total", context.grv_total, {})
    trace("inputs.project_costs_total", context.project_costs_total, {})
    trace("inputs.total_saleable_area", s.total_saleable_area, {})
    trace("inputs.target_margin_pct", target_margin, {})
    trace("inputs.tax_rate", tax_rate, {})
    trace("inputs.discount_rate", discount_rate, {})

    trace("summary.total_revenue", s.total_revenue, {})
    trace("summary.total_revenue_ex_gst", s.total_revenue_ex_gst, {
        "summary.total_revenue": s.total_revenue,
    })
    trace("summary.land_cost", s.land_cost, {})

    section_inputs = {
        "inputs.construction_total": context.construction_total,
        "inputs.grv_total": context.grv_total,
    }
    for name in (
        "acquisition_costs", "professional_fees", "construction_costs", "dev_fees",
        "land_holding_costs", "contingency_costs", "agent_fees", "legal_fees",
        "marketing_costs", "facility_fees", "loan_fees", "equity_fees",
    ):
        trace(f"summary.{name}", getattr(s, name), section_inputs)

    trace("summary.total_costs_ex_funding", s.total_costs_ex_funding, {
        "summary.land_cost": s.land_cost,
        "summary.acquisition_costs": s.acquisition_costs,
        "summary.professional_fees": s.professional_fees,
        "summary.construction_costs": s.construction_costs,
        "summary.dev_fees": s.dev_fees,
        "summary.land_holding_costs": s.land_holding_costs,
        "summary.contingency_costs": s.contingency_costs,
        "summary.agent_fees": s.agent_fees,
        "summary.legal_fees": s.legal_fees,
    })
    trace("summary.total_debt", s.total_debt, {})
    trace("summary.total_debt_interest", s.total_debt_interest, {
        "summary.total_debt": s.total_debt,
    }, notes=f"{len(s.facility_drawdowns)} auto-sized facilities on the drawdown schedule")
    trace("summary.total_equity", s.total_equity, {})
    trace("summary.total_funding_costs", s.total_funding_costs, {
        "summary.facility_fees": s.facility_fees,
        "summary.loan_fees": s.loan_fees,
        "summary.equity_fees": s.equity_fees,
        "summary.total_debt_interest": s.total_debt_interest,
    })
    trace("summary.total_costs", s.total_costs, {
        "summary.total_costs_ex_funding": s.total_costs_ex_funding,
        "summary.total_funding_costs": s.total_funding_costs,
    })

    trace("summary.profit", s.profit, {
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
        "summary.total_costs": s.total_costs,
    })
    trace("summary.profit_on_cost", s.profit_on_cost, {
        "summary.profit": s.profit,
        "summary.total_costs": s.total_costs,
    })
    trace("summary.development_margin", s.development_margin, {
        "summary.profit": s.profit,
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
    })
    trace("summary.profit_on_project_cost", s.profit_on_project_cost, {
        "summary.profit": s.profit,
        "summary.total_costs_ex_funding": s.total_costs_ex_funding,
    })
    trace("summary.net_sales_revenue", s.net_sales_revenue, {
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
        "summary.agent_fees": s.agent_fees,
        "summary.legal_fees": s.legal_fees,
    })
    trace("summary.revenue_per_unit", s.revenue_per_unit, {
        "summary.total_revenue": s.total_revenue,
        "inputs.unit_count": s.unit_count,
    })
    trace("summary.cost_per_unit", s.cost_per_unit, {
        "summary.total_costs": s.total_costs,
        "inputs.unit_count": s.unit_count,
    })
    trace("summary.profit_per_unit", s.profit_per_unit, {
        "summary.profit": s.profit,
        "inputs.unit_count": s.unit_count,
    })

    trace("summary.debt_leverage_pct", s.debt_leverage_pct, {
        "summary.total_debt": s.total_debt,
        "summary.total_costs_ex_funding": s.total_costs_ex_funding,
    })
    trace("summary.debt_to_cost_ratio", s.debt_to_cost_ratio, {
        "summary.total_debt": s.total_debt,
        "summary.total_costs": s.total_costs,
    })
    trace("summary.debt_to_grv_ratio", s.debt_to_grv_ratio, {
        "summary.total_debt": s.total_debt,
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
    })

    trace("summary.ebit", s.ebit, {
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
        "summary.total_costs_ex_funding": s.total_costs_ex_funding,
    })
    trace("summary.tax_amount", s.tax_amount, {
        "summary.profit": s.profit,
        "inputs.tax_rate": tax_rate,
    })
    trace("summary.profit_after_tax", s.profit_after_tax, {
        "summary.profit": s.profit,
        "summary.tax_amount": s.tax_amount,
    })
    trace("summary.residual_land_value", s.residual_land_value, {
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
        "summary.total_costs": s.total_costs,
        "summary.land_cost": s.land_cost,
    })
    trace("summary.residual_land_value_at_target", s.residual_land_value_at_target, {
        "summary.total_revenue_ex_gst": s.total_revenue_ex_gst,
        "summary.total_costs": s.total_costs,
        "summary.land_cost": s.land_cost,
        "inputs.target_margin_pct": target_margin,
    })
    trace("summary.npv", s.npv, {"inputs.discount_rate": discount_rate})
    trace("summary.irr", s.irr, {})
