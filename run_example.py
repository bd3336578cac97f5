#!/usr/bin/env python3
"""Example script to run a development feasibility for a sample scenario."""

import json
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from feasibility.models import (
    FeasibilitySnapshot,
    GstStatus,
    HoldingFrequency,
    LandLot,
    LineItem,
    LineItemSection,
    PaymentScheduleEntry,
    RateType,
    SalesUnit,
    Scenario,
)
from feasibility.calculations import (
    CashflowPlacementError,
    TraceContext,
    compute_summary,
    project_cashflow,
    summarise_gst,
)
from feasibility.export import (
    WorkbookConfig,
    cashflow_to_frame,
    generate_feasibility_workbook,
    summary_to_frame,
)

logger = logging.getLogger("run_example")


def get_sample_snapshot() -> FeasibilitySnapshot:
    """Four townhouses on two lots. All money in cents."""
    return FeasibilitySnapshot(
        scenario=Scenario(
            name="Riverside Terraces",
            project_length_months=18,
            project_lots=4,
            start_date=date(2026, 1, 1),
        ),
        land_lots=[
            LandLot(
                name="Lot 1",
                land_size_m2=400,
                purchase_price=50_000_000,
                deposit_amount=5_000_000,
                deposit_month=1,
                settlement_month=12,
                payment_schedule=[PaymentScheduleEntry(month=6, amount=10_000_000)],
            ),
            LandLot(
                name="Lot 2",
                land_size_m2=600,
                purchase_price=70_000_000,
                deposit_amount=7_000_000,
                deposit_month=1,
                settlement_month=3,
            ),
        ],
        line_items=[
            LineItem(section=LineItemSection.ACQUISITION, name="Stamp duty",
                     rate=6_500_000, gst_status=GstStatus.EXEMPT),
            LineItem(section=LineItemSection.PROFESSIONAL_FEES, name="Architect",
                     rate=11_000_000, gst_status=GstStatus.INCLUSIVE,
                     cashflow_start_month=1, cashflow_span_months=6),
            LineItem(section=LineItemSection.CONSTRUCTION, name="Build contract",
                     quantity=4, rate=60_000_000, cashflow_start_month=4, cashflow_span_months=10),
            LineItem(section=LineItemSection.CONSTRUCTION, name="Builder's margin",
                     rate_type=RateType.PCT_CONSTRUCTION, rate=10,
                     cashflow_start_month=4, cashflow_span_months=10),
            LineItem(section=LineItemSection.DEV_FEES, name="Development management",
                     rate_type=RateType.PCT_GRV, rate=2, cashflow_span_months=18),
            LineItem(section=LineItemSection.LAND_HOLDING, name="Council rates",
                     rate=250_000, gst_status=GstStatus.EXEMPT,
                     frequency=HoldingFrequency.QUARTERLY, cashflow_span_months=18),
            LineItem(section=LineItemSection.CONTINGENCY, name="Contingency",
                     rate_type=RateType.PCT_PROJECT_COSTS, rate=5,
                     cashflow_start_month=4, cashflow_span_months=10),
            LineItem(section=LineItemSection.AGENT_FEES, name="Sales commission",
                     rate_type=RateType.PCT_GRV, rate=2.5, cashflow_start_month=18),
            LineItem(section=LineItemSection.MARKETING, name="Display suite",
                     rate=3_000_000, cashflow_start_month=10, cashflow_span_months=6),
        ],
        sales_units=[
            SalesUnit(name=f"TH{i}", sale_price=165_000_000, settlement_month=17 + (i > 2), area_m2=190)
            for i in range(1, 5)
        ],
    )


def load_snapshot(path: Path) -> FeasibilitySnapshot:
    """Load a snapshot from a JSON file of row dictionaries."""
    with open(path) as f:
        return FeasibilitySnapshot.from_dict(json.load(f))


def print_summary(snapshot: FeasibilitySnapshot, summary) -> None:
    print("\n" + "=" * 60)
    print(f"FEASIBILITY SUMMARY: {snapshot.scenario.name}")
    print("=" * 60)

    df = summary_to_frame(summary)
    for group, rows in df.groupby("group", sort=False):
        print(f"\n{group}")
        print("-" * 60)
        for _, row in rows.iterrows():
            if row["unit"] == "$":
                value = f"${row['value']:>16,.2f}"
            elif row["unit"] == "%":
                value = f"{row['value']:>16.2f}%"
            elif row["unit"] == "m2":
                value = f"{row['value']:>14,.2f} m2"
            else:
                value = f"{row['value']:>17,.0f}"
            print(f"  {row['metric']:<36} {value}")

    gst = summarise_gst(snapshot)
    print("\nGST Position")
    print("-" * 60)
    print(f"  {'GST on sales':<36} ${gst.gst_on_sales / 100:>16,.2f}")
    print(f"  {'GST on costs':<36} ${gst.gst_on_costs / 100:>16,.2f}")
    print(f"  {'Net GST payable':<36} ${gst.net_gst_payable / 100:>16,.2f}")


def print_cashflow(projection) -> None:
    print("\n" + "=" * 60)
    print("MONTHLY CASHFLOW ($)")
    print("=" * 60 + "\n")

    df = cashflow_to_frame(projection.months)
    columns = ["label", "revenue", "land_cost", "construction_costs", "total_costs",
               "net_cashflow", "cumulative_cashflow"]
    print(df[columns].to_string(float_format=lambda v: f"{v:,.0f}"))

    if projection.dropped:
        print(f"\n{projection.dropped_count} amounts fell beyond the horizon:")
        for entry in projection.dropped:
            print(f"  {entry.source_kind} '{entry.source_name}' month {entry.month}: "
                  f"${entry.amount / 100:,.2f}")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Development feasibility")
    parser.add_argument(
        "--input",
        type=Path,
        help="JSON file with scenario rows (defaults to the built-in sample)",
    )
    parser.add_argument(
        "--excel",
        type=Path,
        help="Write the feasibility workbook to this path",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print the traced calculations",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail if any amount falls beyond the project horizon",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    snapshot = load_snapshot(args.input) if args.input else get_sample_snapshot()

    try:
        projection = project_cashflow(snapshot, strict=args.strict)
    except CashflowPlacementError as e:
        logger.error("%s", e)
        sys.exit(1)

    with TraceContext(enabled=args.trace or args.excel is not None) as ctx:
        summary = compute_summary(snapshot, projection)

    print_summary(snapshot, summary)
    print_cashflow(projection)

    if args.trace:
        print("\n" + ctx.summary())

    if args.excel:
        config = WorkbookConfig(scenario_name=snapshot.scenario.name)
        args.excel.write_bytes(
            generate_feasibility_workbook(summary, projection.months, trace_context=ctx, config=config)
        )
        logger.info("Workbook written to %s", args.excel)

    print("\nDone.")


if __name__ == "__main__":
    main()
