"""Tabular views of computed results as pandas DataFrames."""

from dataclasses import asdict
from typing import List, Sequence, Tuple

import pandas as pd

from ..calculations.cashflow import COST_COLUMNS, CashflowMonth
from ..calculations.comparison import MetricDelta
from ..calculations.drawdown import FacilityDrawdown
from ..calculations.summary import FeasibilitySummary

# (group, label, summary attribute, unit) in report order
SUMMARY_LINES: Tuple[Tuple[str, str, str, str], ...] = (
    ("Revenue", "Gross Revenue (inc GST)", "total_revenue", "$"),
    ("Revenue", "Revenue (ex GST)", "total_revenue_ex_gst", "$"),
    ("Revenue", "Net Sales Revenue", "net_sales_revenue", "$"),
    ("Revenue", "Units", "unit_count", "count"),
    ("Land", "Land Cost", "land_cost", "$"),
    ("Land", "Land Size", "total_land_size", "m2"),
    ("Land", "Lots", "lot_count", "count"),
    ("Costs", "Acquisition", "acquisition_costs", "$"),
    ("Costs", "Professional Fees", "professional_fees", "$"),
    ("Costs", "Construction", "construction_costs", "$"),
    ("Costs", "Development Fees", "dev_fees", "$"),
    ("Costs", "Land Holding", "land_holding_costs", "$"),
    ("Costs", "Contingency", "contingency_costs", "$"),
    ("Costs", "Agent Fees", "agent_fees", "$"),
    ("Costs", "Legal Fees", "legal_fees", "$"),
    ("Costs", "Total Costs (ex Funding)", "total_costs_ex_funding", "$"),
    ("Costs", "Marketing (not in totals)", "marketing_costs", "$"),
    ("Funding", "Facility Fees", "facility_fees", "$"),
    ("Funding", "Loan Fees", "loan_fees", "$"),
    ("Funding", "Equity Fees", "equity_fees", "$"),
    ("Funding", "Debt Interest", "total_debt_interest", "$"),
    ("Funding", "Total Funding Costs", "total_funding_costs", "$"),
    ("Funding", "Total Debt", "total_debt", "$"),
    ("Funding", "Total Equity", "total_equity", "$"),
    ("Profit", "Total Costs", "total_costs", "$"),
    ("Profit", "Profit", "profit", "$"),
    ("Profit", "Profit on Cost", "profit_on_cost", "%"),
    ("Profit", "Development Margin", "development_margin", "%"),
    ("Profit", "Profit on Project Cost", "profit_on_project_cost", "%"),
    ("Profit", "Tax", "tax_amount", "$"),
    ("Profit", "Profit After Tax", "profit_after_tax", "$"),
    ("Per Unit", "Revenue per Unit (inc GST)", "revenue_per_unit", "$"),
    ("Per Unit", "Cost per Unit", "cost_per_unit", "$"),
    ("Per Unit", "Profit per Unit", "profit_per_unit", "$"),
    ("Leverage", "Debt Leverage", "debt_leverage_pct", "%"),
    ("Leverage", "LTC", "debt_to_cost_ratio", "%"),
    ("Leverage", "LVR", "debt_to_grv_ratio", "%"),
    ("Returns", "NPV", "npv", "$"),
    ("Returns", "IRR", "irr", "%"),
    ("Residual Land Value", "Break-even", "residual_land_value", "$"),
    ("Residual Land Value", "At Target Margin", "residual_land_value_at_target", "$"),
)

CASHFLOW_AMOUNT_COLUMNS: Tuple[str, ...] = (
    "revenue",
    "land_cost",
    *COST_COLUMNS,
    "total_costs",
    "net_cashflow",
    "cumulative_cashflow",
)


def _to_dollars(cents):
    return cents / 100


def summary_to_frame(summary: FeasibilitySummary, in_dollars: bool = True) -> pd.DataFrame:
    """One row per headline figure: group, metric, value, unit.

    Monetary values are converted from cents to dollars unless
    ``in_dollars`` is False.
    """
    rows = []
    for group, label, attr, unit in SUMMARY_LINES:
        value = getattr(summary, attr)
        if unit == "$" and in_dollars:
            value = _to_dollars(value)
        rows.append({"group": group, "metric": label, "value": value, "unit": unit})
    return pd.DataFrame(rows, columns=["group", "metric", "value", "unit"])


def cashflow_to_frame(months: Sequence[CashflowMonth], in_dollars: bool = True) -> pd.DataFrame:
    """Monthly cashflow indexed by month number, one column per category."""
    df = pd.DataFrame(
        [asdict(m) for m in months],
        columns=["month", "label", *CASHFLOW_AMOUNT_COLUMNS],
    ).set_index("month")
    if in_dollars and not df.empty:
        df[list(CASHFLOW_AMOUNT_COLUMNS)] = df[list(CASHFLOW_AMOUNT_COLUMNS)] / 100
    return df


def drawdowns_to_frame(drawdowns: Sequence[FacilityDrawdown], in_dollars: bool = True) -> pd.DataFrame:
    """Long-format drawdown schedule: one row per facility and month."""
    amount_columns = [
        "costs_drawn", "interest_accrued", "capitalised", "cumulative_drawn", "available_balance",
    ]
    rows: List[dict] = []
    for dd in drawdowns:
        for m in dd.months:
            row = {"facility": dd.facility_name, **asdict(m)}
            rows.append(row)
    df = pd.DataFrame(rows, columns=["facility", "month", "label", *amount_columns])
    if in_dollars and not df.empty:
        df[amount_columns] = df[amount_columns] / 100
    return df


def comparison_to_frame(rows: Sequence[MetricDelta], in_dollars: bool = True) -> pd.DataFrame:
    """Comparison rows with values for A and B, the delta and whether B is better."""
    records = []
    for row in rows:
        scale = _to_dollars if (row.format == "currency" and in_dollars) else (lambda v: v)
        records.append({
            "metric": row.label,
            "a": scale(row.value_a),
            "b": scale(row.value_b),
            "delta": scale(row.delta),
            "b_is_better": row.b_is_better,
        })
    return pd.DataFrame(records, columns=["metric", "a", "b", "delta", "b_is_better"])
