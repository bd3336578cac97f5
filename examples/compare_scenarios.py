#!/usr/bin/env python3
"""Compare a base feasibility against a debt-funded variant of the same project.

Usage:
    python examples/compare_scenarios.py

The variant adds an auto-sized senior facility (60% of total development
cost ex GST, interest capitalised) so the comparison shows what the debt
costs in profit and margin, and prints the facility's drawdown schedule.
"""

import sys
from dataclasses import replace
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from feasibility.models import CalculationType, DebtFacility, LandLoanType, LvrMethod
from feasibility.calculations import compare_summaries, compute_summary, format_comparison_table
from feasibility.export import drawdowns_to_frame
from run_example import get_sample_snapshot


def main():
    """Run the base and funded scenarios and compare them."""
    print("=" * 76)
    print("SCENARIO COMPARISON - EQUITY FUNDED VS SENIOR DEBT")
    print("=" * 76)
    print()

    base = get_sample_snapshot()
    funded = replace(
        base,
        scenario=replace(base.scenario, name="Senior debt"),
        debt_facilities=[
            DebtFacility(
                name="Senior construction",
                calculation_type=CalculationType.AUTO,
                lvr_method=LvrMethod.TDC_EX_GST,
                lvr_pct=60,
                interest_rate=8.5,
                land_loan_type=LandLoanType.PROVISIONED,
            ),
        ],
    )

    base_summary = compute_summary(base)
    funded_summary = compute_summary(funded)

    rows = compare_summaries(base_summary, funded_summary)
    print(format_comparison_table(rows, "Equity only", "Senior debt"))

    print("\nDrawdown schedule ($)")
    print("-" * 76)
    df = drawdowns_to_frame(funded_summary.facility_drawdowns)
    print(df.drop(columns=["facility"]).to_string(index=False, float_format=lambda v: f"{v:,.0f}"))

    [drawdown] = funded_summary.facility_drawdowns
    print(f"\nFacility size:   ${drawdown.facility_size / 100:,.0f}")
    print(f"Peak drawn:      ${drawdown.peak_drawn / 100:,.0f}")
    print(f"Total interest:  ${drawdown.total_interest / 100:,.0f}")


if __name__ == "__main__":
    main()
