"""Calculation modules for the feasibility engine."""

from .rounding import round_half_ceiling, safe_ratio_pct, per_unit
from .gst import normalize_to_ex_gst, calculate_gst, add_gst, margin_scheme_gst
from .resolution import (
    ResolutionContext,
    resolve_line_item_amount,
    sum_section,
    build_resolution_context,
)
from .drawdown import ResolvedFacility, DrawdownMonth, FacilityDrawdown, compute_drawdowns
from .cashflow import (
    CashflowMonth,
    CashflowProjection,
    CashflowPlacementError,
    DroppedEntry,
    project_cashflow,
    generate_cashflow,
    monthly_project_costs,
)
from .returns import calculate_npv, calculate_irr

# Summary calculator (shares line-item resolution with the cashflow)
from .summary import (
    FacilityCalcContext,
    FeasibilitySummary,
    GstPosition,
    compute_summary,
    resolve_facility_size,
    loan_interest,
    summarise_gst,
)
from .comparison import MetricDelta, compare_summaries, format_comparison_table

# Audit trail
from .formula_registry import FormulaCategory, FormulaDefinition, FormulaRegistry
from .trace import TraceContext, TracedValue, trace

__all__ = [
    "round_half_ceiling",
    "safe_ratio_pct",
    "per_unit",
    "normalize_to_ex_gst",
    "calculate_gst",
    "add_gst",
    "margin_scheme_gst",
    "ResolutionContext",
    "resolve_line_item_amount",
    "sum_section",
    "build_resolution_context",
    "ResolvedFacility",
    "DrawdownMonth",
    "FacilityDrawdown",
    "compute_drawdowns",
    "CashflowMonth",
    "CashflowProjection",
    "CashflowPlacementError",
    "DroppedEntry",
    "project_cashflow",
    "generate_cashflow",
    "monthly_project_costs",
    "calculate_npv",
    "calculate_irr",
    "FacilityCalcContext",
    "FeasibilitySummary",
    "GstPosition",
    "compute_summary",
    "resolve_facility_size",
    "loan_interest",
    "summarise_gst",
    "MetricDelta",
    "compare_summaries",
    "format_comparison_table",
    "FormulaCategory",
    "FormulaDefinition",
    "FormulaRegistry",
    "TraceContext",
    "TracedValue",
    "trace",
]
