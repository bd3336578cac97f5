"""Tests for loading snapshots from raw row dictionaries."""

from datetime import date

import pytest

from feasibility.calculations import compute_summary, generate_cashflow
from feasibility.models import (
    FeasibilitySnapshot,
    GstStatus,
    LineItemSection,
    RateType,
    Scenario,
    SnapshotError,
)


class TestFromDict:
    """Coercion of persistence-layer rows into records."""

    def test_scenario_fields(self, sample_rows):
        snapshot = FeasibilitySnapshot.from_dict(sample_rows)

        assert snapshot.scenario.name == "Rows scenario"
        assert snapshot.scenario.project_id == "42"
        assert snapshot.scenario.project_length_months == 12
        assert snapshot.scenario.start_date == date(2026, 3, 15)

    def test_numeric_strings_parsed(self, sample_rows):
        snapshot = FeasibilitySnapshot.from_dict(sample_rows)
        [lot] = snapshot.land_lots

        assert lot.land_size_m2 == 450.5
        assert lot.payment_schedule[0].amount == 5_000_000
        assert lot.margin_scheme_applied is True
        assert snapshot.debt_facilities[0].sort_order == 2

    def test_enums_resolved(self, sample_rows):
        snapshot = FeasibilitySnapshot.from_dict(sample_rows)
        build = snapshot.line_items[0]

        assert build.section is LineItemSection.CONSTRUCTION
        assert build.rate_type is RateType.AMOUNT
        assert build.gst_status is GstStatus.EXCLUSIVE
        assert snapshot.sales_units[0].gst_status is GstStatus.INCLUSIVE

    def test_unknown_enum_value_kept_raw(self, sample_rows):
        snapshot = FeasibilitySnapshot.from_dict(sample_rows)
        assert snapshot.line_items[1].rate_type == "per widget"

    def test_missing_child_lists_are_empty(self):
        snapshot = FeasibilitySnapshot.from_dict({"scenario": {"name": "Bare"}})

        assert snapshot.land_lots == []
        assert snapshot.debt_loans == []
        assert snapshot.scenario.project_length_months == 24

    def test_empty_string_number_is_missing(self):
        snapshot = FeasibilitySnapshot.from_dict({
            "scenario": {},
            "sales_units": [{"name": "U", "sale_price": ""}],
        })
        assert snapshot.sales_units[0].sale_price is None

    def test_loaded_rows_compute(self, sample_rows):
        """Rows from the data layer run straight through both calculators."""
        snapshot = FeasibilitySnapshot.from_dict(sample_rows)
        summary = compute_summary(snapshot)
        months = generate_cashflow(snapshot)

        # Land 30M + build 40M + legacy 2 x $1
        assert summary.total_costs_ex_funding == 70_000_200
        assert summary.total_debt_interest == 900_000
        assert summary.total_costs == 70_900_200
        assert summary.total_revenue_ex_gst == 80_000_000
        assert summary.profit == 9_099_800
        assert len(months) == 12
        assert months[0].label == "Mar 2026"
        assert months[2].land_cost == 5_000_000
        assert months[5].land_cost == 22_000_000
        assert months[11].revenue == 80_000_000


class TestWholeNumberFields:
    """Months, horizons and counts arrive as JSON floats from some exporters."""

    @pytest.fixture
    def float_rows(self):
        return {
            "scenario": {"project_length_months": 12.0, "project_lots": 2.0, "start_date": "2026-01-01"},
            "land_lots": [
                {
                    "name": "Lot",
                    "purchase_price": 1_000_000,
                    "deposit_amount": 100_000,
                    "deposit_month": 2.0,
                    "settlement_month": "6.0",
                    "payment_schedule": [{"month": 3.0, "amount": 200_000}],
                },
            ],
            "line_items": [
                {
                    "section": "construction",
                    "name": "Build",
                    "rate_type": "$ Amount",
                    "quantity": 1,
                    "rate": 600_000,
                    "gst_status": "exclusive",
                    "cashflow_start_month": 1.0,
                    "cashflow_span_months": 6.0,
                },
            ],
            "debt_loans": [{"name": "Loan", "principal_amount": 1_000_000, "term_months": 12.0}],
        }

    def test_integral_floats_become_ints(self, float_rows):
        snapshot = FeasibilitySnapshot.from_dict(float_rows)
        [lot] = snapshot.land_lots
        [item] = snapshot.line_items

        for value in (
            snapshot.scenario.project_length_months,
            snapshot.scenario.project_lots,
            lot.deposit_month,
            lot.settlement_month,
            lot.payment_schedule[0].month,
            item.cashflow_start_month,
            item.cashflow_span_months,
            snapshot.debt_loans[0].term_months,
        ):
            assert type(value) is int

    def test_float_rows_compute(self, float_rows):
        snapshot = FeasibilitySnapshot.from_dict(float_rows)
        months = generate_cashflow(snapshot)
        summary = compute_summary(snapshot)

        assert len(months) == 12
        assert months[1].land_cost == 100_000
        assert months[2].land_cost == 200_000
        assert months[5].land_cost == 700_000
        assert [m.construction_costs for m in months[:7]] == [100_000] * 6 + [0]
        assert summary.construction_costs == 600_000

    @pytest.mark.parametrize("field_name,row", [
        ("project_length_months", {"scenario": {"project_length_months": 12.5}}),
        ("deposit_month", {"scenario": {}, "land_lots": [{"deposit_month": 1.5}]}),
        ("cashflow_span_months", {"scenario": {}, "line_items": [{"cashflow_span_months": "2.5"}]}),
        ("month", {"scenario": {}, "land_lots": [{"payment_schedule": [{"month": 3.2}]}]}),
        ("term_months", {"scenario": {}, "debt_loans": [{"term_months": 6.25}]}),
    ])
    def test_fractional_values_rejected(self, field_name, row):
        with pytest.raises(SnapshotError, match=field_name):
            FeasibilitySnapshot.from_dict(row)

    def test_non_date_start_date_rejected(self):
        with pytest.raises(SnapshotError, match="start_date"):
            FeasibilitySnapshot.from_dict({"scenario": {"start_date": 20260101}})

    def test_date_start_date_kept(self):
        snapshot = FeasibilitySnapshot.from_dict({"scenario": {"start_date": date(2026, 1, 1)}})
        assert snapshot.scenario.start_date == date(2026, 1, 1)


class TestFromDictErrors:
    """Malformed input is rejected with SnapshotError."""

    def test_not_a_mapping(self):
        with pytest.raises(SnapshotError, match="mapping"):
            FeasibilitySnapshot.from_dict(["scenario"])

    def test_children_must_be_a_list(self):
        with pytest.raises(SnapshotError, match="line_items"):
            FeasibilitySnapshot.from_dict({"scenario": {}, "line_items": {"rate": 1}})

    def test_child_rows_must_be_mappings(self):
        with pytest.raises(SnapshotError, match=r"sales_units\[1\]"):
            FeasibilitySnapshot.from_dict({"scenario": {}, "sales_units": [{}, "oops"]})

    def test_non_numeric_string(self):
        with pytest.raises(SnapshotError, match="rate"):
            FeasibilitySnapshot.from_dict({"scenario": {}, "line_items": [{"rate": "lots"}]})

    def test_boolean_is_not_a_number(self):
        with pytest.raises(SnapshotError, match="purchase_price"):
            FeasibilitySnapshot.from_dict({"scenario": {}, "land_lots": [{"purchase_price": True}]})

    def test_bad_start_date(self):
        with pytest.raises(SnapshotError, match="start_date"):
            FeasibilitySnapshot.from_dict({"scenario": {"start_date": "15/03/2026"}})

    def test_snapshot_error_is_value_error(self):
        with pytest.raises(ValueError):
            FeasibilitySnapshot.from_dict("not a dict")


class TestProjectLength:
    @pytest.mark.parametrize("months,expected", [(18, 18), (None, 24), (0, 24), (-1, 24)])
    def test_horizon(self, months, expected):
        snapshot = FeasibilitySnapshot(scenario=Scenario(project_length_months=months))
        assert snapshot.project_length_months == expected
