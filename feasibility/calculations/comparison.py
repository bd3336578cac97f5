"""Side-by-side comparison of two feasibility summaries."""

from dataclasses import dataclass
from typing import List, Tuple

from .summary import FeasibilitySummary

# (label, summary attribute, format, higher is better)
COMPARISON_METRICS: Tuple[Tuple[str, str, str, bool], ...] = (
    ("Revenue (Ex GST)", "total_revenue_ex_gst", "currency", True),
    ("Total Costs", "total_costs", "currency", False),
    ("Profit", "profit", "currency", True),
    ("Profit Margin", "profit_margin", "pct", True),
    ("Dev Margin", "development_margin", "pct", True),
    ("Profit on Cost", "profit_on_cost", "pct", True),
    ("Construction", "construction_costs", "currency", False),
    ("Land Cost", "land_cost", "currency", False),
    ("Funding Costs", "total_funding_costs", "currency", False),
    ("IRR", "irr", "pct", True),
    ("NPV", "npv", "currency", True),
    ("LTC Ratio", "debt_to_cost_ratio", "pct", False),
    ("LVR", "debt_to_grv_ratio", "pct", False),
)


@dataclass
class MetricDelta:
    """One metric of scenario A against scenario B."""

    label: str
    value_a: float
    value_b: float
    delta: float  # B - A
    format: str  # "currency" (cents) or "pct"
    higher_is_better: bool

    @property
    def b_is_better(self) -> bool:
        """True if B improves on A for this metric; a zero delta is not better."""
        return self.delta > 0 if self.higher_is_better else self.delta < 0


def compare_summaries(summary_a: FeasibilitySummary, summary_b: FeasibilitySummary) -> List[MetricDelta]:
    """Compare two scenarios metric by metric.

    Args:
        summary_a: Baseline scenario summary.
        summary_b: Alternative scenario summary.

    Returns:
        One MetricDelta per comparison metric, in display order.
    """
    rows = []
    for label, attr, fmt, higher_is_better in COMPARISON_METRICS:
        a = getattr(summary_a, attr)
        b = getattr(summary_b, attr)
        rows.append(MetricDelta(
            label=label,
            value_a=a,
            value_b=b,
            delta=b - a,
            format=fmt,
            higher_is_better=higher_is_better,
        ))
    return rows


def _fmt(value: float, fmt: str) -> str:
    if fmt == "pct":
        return f"{value:.2f}%"
    return f"${value / 100:,.0f}"


def format_comparison_table(
    rows: List[MetricDelta],
    name_a: str = "Scenario A",
    name_b: str = "Scenario B",
) -> str:
    """Format a comparison as a text table.

    Rows where B improves on A are marked with "+", rows where it is worse
    with "-".
    """
    width = 76
    lines = [
        "=" * width,
        "SCENARIO COMPARISON",
        "=" * width,
        "",
        f"{'Metric':<20} {name_a[:16]:>16} {name_b[:16]:>16} {'Difference':>16}",
        "-" * width,
    ]
    for row in rows:
        if row.b_is_better:
            marker = "+"
        elif row.delta == 0:
            marker = " "
        else:
            marker = "-"
        lines.append(
            f"{row.label:<20} {_fmt(row.value_a, row.format):>16} "
            f"{_fmt(row.value_b, row.format):>16} {_fmt(row.delta, row.format):>16} {marker}"
        )
    lines.append("=" * width)
    return "\n".join(lines)
