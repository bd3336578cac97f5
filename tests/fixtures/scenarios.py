"""Scenario snapshots shared by the calculation tests. All money in cents."""

from dataclasses import replace
from datetime import date

from feasibility.models import (
    CalculationType,
    DebtFacility,
    DebtLoan,
    EquityPartner,
    FeasibilitySnapshot,
    GstStatus,
    HoldingFrequency,
    LandLoanType,
    LandLot,
    LineItem,
    LineItemSection,
    LvrMethod,
    PaymentScheduleEntry,
    RateType,
    SalesUnit,
    Scenario,
)


def get_sample_snapshot() -> FeasibilitySnapshot:
    """A four-townhouse residential scenario without debt.

    Two lots (400 m2 and 600 m2) bought for $1.2M in total, four units sold
    for $1.65M each (GST-inclusive). Expected results:
    - Construction costs: 269,500,000 (245M flat + 10% builder's margin)
    - Contingency: 21,875,000 (5% of 437.5M project costs)
    - Total costs ex funding: 459,375,000
    - Total costs: 460,375,000
    - Revenue ex GST: 600,000,000
    - Profit: 139,625,000

    Every placement falls inside the 18-month horizon and there is no
    marketing or debt interest, so cashflow totals reconcile with the summary.
    """
    return FeasibilitySnapshot(
        scenario=Scenario(
            name="Riverside Terraces",
            project_id="proj-001",
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
            LineItem(
                section=LineItemSection.ACQUISITION, name="Stamp duty",
                rate_type=RateType.AMOUNT, quantity=1, rate=6_500_000,
                gst_status=GstStatus.EXEMPT,
                cashflow_start_month=1, cashflow_span_months=1,
            ),
            LineItem(
                section=LineItemSection.PROFESSIONAL_FEES, name="Architect",
                rate_type=RateType.AMOUNT, quantity=1, rate=11_000_000,
                gst_status=GstStatus.INCLUSIVE,
                cashflow_start_month=1, cashflow_span_months=6,
            ),
            LineItem(
                section=LineItemSection.CONSTRUCTION, name="Build contract",
                rate_type=RateType.AMOUNT, quantity=4, rate=60_000_000,
                cashflow_start_month=4, cashflow_span_months=10,
            ),
            LineItem(
                section=LineItemSection.CONSTRUCTION, name="Site works",
                rate_type=RateType.PER_M2, quantity=1, rate=5_000,
                cashflow_start_month=4, cashflow_span_months=3,
            ),
            LineItem(
                section=LineItemSection.CONSTRUCTION, name="Builder's margin",
                rate_type=RateType.PCT_CONSTRUCTION, quantity=1, rate=10,
                cashflow_start_month=4, cashflow_span_months=10,
            ),
            LineItem(
                section=LineItemSection.DEV_FEES, name="Development management",
                rate_type=RateType.PCT_GRV, quantity=1, rate=2,
                cashflow_start_month=1, cashflow_span_months=18,
            ),
            LineItem(
                section=LineItemSection.LAND_HOLDING, name="Council rates",
                rate_type=RateType.AMOUNT, quantity=1, rate=250_000,
                gst_status=GstStatus.EXEMPT, frequency=HoldingFrequency.QUARTERLY,
                cashflow_start_month=1, cashflow_span_months=18,
            ),
            LineItem(
                section=LineItemSection.CONTINGENCY, name="Contingency",
                rate_type=RateType.PCT_PROJECT_COSTS, quantity=1, rate=5,
                cashflow_start_month=4, cashflow_span_months=10,
            ),
            LineItem(
                section=LineItemSection.AGENT_FEES, name="Sales commission",
                rate_type=RateType.PCT_GRV, quantity=1, rate=2.5,
                cashflow_start_month=18, cashflow_span_months=1,
            ),
            LineItem(
                section=LineItemSection.LEGAL_FEES, name="Conveyancing",
                rate_type=RateType.PER_LOT, quantity=1, rate=150_000,
                cashflow_start_month=12, cashflow_span_months=1,
            ),
            LineItem(
                section=LineItemSection.FACILITY_FEES, name="Establishment fee",
                rate_type=RateType.AMOUNT, quantity=1, rate=1_000_000,
                cashflow_start_month=1, cashflow_span_months=1,
            ),
        ],
        sales_units=[
            SalesUnit(name="TH1", sale_price=165_000_000, settlement_month=17, area_m2=180),
            SalesUnit(name="TH2", sale_price=165_000_000, settlement_month=17, area_m2=180),
            SalesUnit(name="TH3", sale_price=165_000_000, settlement_month=18, area_m2=200),
            SalesUnit(name="TH4", sale_price=165_000_000, area_m2=200),
        ],
    )


def get_funded_snapshot() -> FeasibilitySnapshot:
    """The sample scenario funded by an auto-sized senior facility, a loan and equity.

    - Senior facility: 60% of total costs ex funding (459,375,000) = 275,625,000
    - Mezzanine loan: 10,000,000 at 12% for 12 months = 1,200,000 interest
    - Equity: 50,000,000 developer, 30,000,000 preferred
    """
    return replace(
        get_sample_snapshot(),
        debt_facilities=[
            DebtFacility(
                name="Senior construction",
                calculation_type=CalculationType.AUTO,
                lvr_method=LvrMethod.TDC_EX_GST,
                lvr_pct=60,
                interest_rate=8,
                term_months=18,
                land_loan_type=LandLoanType.PROVISIONED,
            ),
        ],
        debt_loans=[
            DebtLoan(name="Mezzanine", principal_amount=10_000_000, interest_rate=12, term_months=12),
        ],
        equity_partners=[
            EquityPartner(name="Developer", equity_amount=50_000_000, is_developer_equity=True),
            EquityPartner(name="Investor", equity_amount=30_000_000, return_percentage=15),
        ],
    )


def get_land_placement_snapshot() -> FeasibilitySnapshot:
    """One lot: 500,000 price, 50,000 deposit in month 1, 100,000 in month 6, settlement month 12."""
    return FeasibilitySnapshot(
        scenario=Scenario(name="Land only", project_length_months=24, start_date=date(2026, 1, 1)),
        land_lots=[
            LandLot(
                name="Corner block",
                purchase_price=500_000,
                deposit_amount=50_000,
                deposit_month=1,
                settlement_month=12,
                payment_schedule=[PaymentScheduleEntry(month=6, amount=100_000)],
            ),
        ],
    )


def get_sample_rows() -> dict:
    """The shape the persistence layer hands over: plain row dictionaries."""
    return {
        "scenario": {
            "name": "Rows scenario",
            "project_id": 42,
            "development_type": "residential",
            "project_length_months": "12",
            "start_date": "2026-03-15T00:00:00",
            "total_revenue": 999,
            "unexpected_column": "ignored",
        },
        "land_lots": [
            {
                "name": "Lot A",
                "land_size_m2": "450.5",
                "purchase_price": 30_000_000,
                "deposit_amount": 3_000_000,
                "deposit_month": 1,
                "settlement_month": 6,
                "payment_schedule": [{"month": 3, "amount": "5000000"}],
                "margin_scheme_applied": 1,
            },
        ],
        "line_items": [
            {
                "section": "construction",
                "name": "Build",
                "rate_type": "$ Amount",
                "quantity": None,
                "rate": 40_000_000,
                "gst_status": "exclusive",
                "amount_ex_gst": 1,
                "cashflow_start_month": 2,
                "cashflow_span_months": 8,
            },
            {
                "section": "construction",
                "name": "Legacy",
                "rate_type": "per widget",
                "quantity": 2,
                "rate": 100,
            },
        ],
        "sales_units": [
            {"name": "U1", "sale_price": 88_000_000, "gst_status": "inclusive", "settlement_month": 12},
        ],
        "debt_facilities": [
            {"name": "Senior", "total_facility": 20_000_000, "interest_provision": 900_000, "sort_order": "2"},
        ],
        "equity_partners": [
            {"name": "Dev", "equity_amount": 10_000_000, "is_developer_equity": True},
        ],
    }
