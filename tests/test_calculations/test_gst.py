"""Tests for GST normalisation and cent rounding."""

import pytest

from feasibility.calculations.gst import (
    add_gst,
    calculate_gst,
    margin_scheme_gst,
    normalize_to_ex_gst,
)
from feasibility.calculations.rounding import per_unit, round_half_ceiling, safe_ratio_pct
from feasibility.models import GstStatus


class TestNormalizeToExGst:
    """Tests for converting amounts to their ex-GST basis."""

    @pytest.mark.parametrize("amount", [0, 1, 99, 100_000, 123_456_789])
    @pytest.mark.parametrize("status", [GstStatus.EXCLUSIVE, GstStatus.EXEMPT])
    def test_exclusive_and_exempt_unchanged(self, amount, status):
        """Exclusive and exempt amounts pass through untouched."""
        assert normalize_to_ex_gst(amount, status) == amount

    def test_inclusive_divides_by_one_point_one(self):
        """Inclusive amounts are divided by 1.10."""
        assert normalize_to_ex_gst(110_000, GstStatus.INCLUSIVE) == 100_000
        assert normalize_to_ex_gst(11_000_000, "inclusive") == 10_000_000

    @pytest.mark.parametrize("amount,expected", [
        (105, 95),  # 95.45
        (1, 1),  # 0.909
        (16, 15),  # 14.545
        (165_000_000, 150_000_000),
    ])
    def test_inclusive_rounds_to_nearest_cent(self, amount, expected):
        """Inclusive conversion rounds to the nearest whole cent."""
        assert normalize_to_ex_gst(amount, GstStatus.INCLUSIVE) == expected

    def test_plain_string_status_accepted(self):
        """Raw status strings from the data layer behave like the enum."""
        assert normalize_to_ex_gst(220, "inclusive") == normalize_to_ex_gst(220, GstStatus.INCLUSIVE)

    def test_unknown_status_treated_as_exclusive(self):
        """Anything other than inclusive is returned unchanged."""
        assert normalize_to_ex_gst(500, "unknown") == 500
        assert normalize_to_ex_gst(500, None) == 500


class TestCalculateGst:
    """Tests for the GST component of an ex-GST amount."""

    def test_exempt_is_zero(self):
        assert calculate_gst(1_000, GstStatus.EXEMPT) == 0

    def test_ten_percent(self):
        assert calculate_gst(1_000, GstStatus.EXCLUSIVE) == 100
        assert calculate_gst(1_000, GstStatus.INCLUSIVE) == 100

    def test_half_cent_rounds_up(self):
        """100.5 cents of GST rounds to 101."""
        assert calculate_gst(1_005, GstStatus.EXCLUSIVE) == 101

    def test_add_gst_grosses_up(self):
        assert add_gst(1_000_000) == 1_100_000
        assert add_gst(1_000_000, GstStatus.EXEMPT) == 1_000_000


class TestMarginSchemeGst:
    """Tests for margin scheme GST."""

    def test_one_eleventh_of_margin(self):
        assert margin_scheme_gst(1_100_000, 550_000) == 50_000

    def test_rounds_to_nearest_cent(self):
        """Margin of 100 gives 9.09 cents of GST."""
        assert margin_scheme_gst(300, 200) == 9

    @pytest.mark.parametrize("sale,purchase", [(500, 600), (600, 600), (0, 0)])
    def test_no_margin_no_gst(self, sale, purchase):
        """Zero or negative margins are clamped to 0."""
        assert margin_scheme_gst(sale, purchase) == 0


class TestRounding:
    """Tests for the shared rounding helpers."""

    @pytest.mark.parametrize("value,expected", [
        (2.5, 3),
        (-2.5, -2),
        (2.4999, 2),
        (-0.5, 0),
        (10, 10),
    ])
    def test_round_half_ceiling(self, value, expected):
        """Halves round towards positive infinity."""
        assert round_half_ceiling(value) == expected

    def test_safe_ratio_guards_zero_denominator(self):
        assert safe_ratio_pct(100, 0) == 0.0
        assert safe_ratio_pct(100, -5) == 0.0
        assert safe_ratio_pct(25, 200) == pytest.approx(12.5)

    def test_per_unit_guards_zero_count(self):
        assert per_unit(1_000, 0) == 0
        assert per_unit(1_000, 3) == 333
        assert per_unit(-1_001, 2) == -500
