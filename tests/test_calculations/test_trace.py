"""Tests for the calculation tracing system."""

import threading

import pytest

from feasibility.calculations.formula_registry import FormulaCategory, FormulaRegistry
from feasibility.calculations.summary import compute_summary
from feasibility.calculations.trace import TraceContext, format_cents, trace


class TestFormulaRegistry:
    """Test the formula registry."""

    def test_formulas_are_registered(self):
        """Formulas are registered on first lookup."""
        all_formulas = FormulaRegistry.get_all()

        assert len(all_formulas) >= 40, "Expected at least 40 formulas registered"

    def test_can_get_formula_by_path(self):
        formula = FormulaRegistry.get("summary.total_costs")

        assert formula is not None
        assert formula.name == "Total Costs"
        assert "total_funding_costs" in formula.formula

    def test_can_get_by_category(self):
        cost_formulas = FormulaRegistry.get_by_category(FormulaCategory.COSTS)

        assert len(cost_formulas) > 0
        for formula in cost_formulas:
            assert formula.category == FormulaCategory.COSTS

    def test_can_get_dependents(self):
        """Profit feeds the margins, per-unit profit and tax."""
        dependents = FormulaRegistry.get_dependents("summary.profit")

        assert "summary.profit_on_cost" in dependents
        assert "summary.development_margin" in dependents
        assert "summary.tax_amount" in dependents

    def test_ancestors_reach_inputs(self):
        ancestors = FormulaRegistry.get_all_ancestors("summary.profit")

        assert "summary.total_costs" in ancestors
        assert "summary.land_cost" in ancestors
        assert "inputs.construction_total" in ancestors

    def test_descendants_of_land_cost(self):
        descendants = FormulaRegistry.get_all_descendants("summary.land_cost")

        assert "summary.total_costs_ex_funding" in descendants
        assert "summary.profit" in descendants

    def test_every_input_is_registered(self):
        """No formula refers to an unregistered figure."""
        all_formulas = FormulaRegistry.get_all()
        for formula in all_formulas.values():
            for path in formula.inputs:
                assert path in all_formulas, f"{formula.field_path} uses unknown {path}"

    def test_reset_repopulates_on_next_lookup(self):
        FormulaRegistry.reset()
        assert FormulaRegistry.get("summary.profit") is not None


class TestTraceContext:
    """Test the trace context manager."""

    def test_trace_context_captures_traces(self):
        with TraceContext() as ctx:
            trace("test.value", 100.0, {"input_a": 50.0, "input_b": 50.0})

        assert "test.value" in ctx.traces
        traced = ctx.traces["test.value"]
        assert traced.value == 100.0
        assert traced.input_values["input_a"] == 50.0
        assert traced.formula_def is None

    def test_trace_context_can_be_disabled(self):
        with TraceContext(enabled=False) as ctx:
            trace("test.value", 100.0, {"input_a": 50.0})

        assert len(ctx.traces) == 0

    def test_retrace_replaces_and_keeps_notes(self):
        with TraceContext() as ctx:
            trace("test.value", 100.0, {"input": 100.0})
            trace("test.value", 200.0, {"input": 200.0}, notes="second pass")

        assert list(ctx.traces) == ["test.value"]
        assert ctx.get_trace("test.value").value == 200.0
        assert ctx.get_trace("test.value").notes == "second pass"

    def test_trace_returns_value(self):
        with TraceContext():
            result = trace("test.value", 42.0, {"x": 42.0})

        assert result == 42.0

    def test_trace_without_context_is_noop(self):
        assert TraceContext.current() is None
        assert trace("test.value", 7, {}) == 7

    def test_nested_context_not_supported(self):
        """Only one TraceContext can be active at a time."""
        with TraceContext():
            with TraceContext():
                trace("inner.value", 1.0, {})

            assert TraceContext.current() is None

        assert TraceContext.current() is None

    def test_threads_keep_their_own_context(self):
        """A trace made in another thread never lands in this thread's context."""
        seen = {}

        def worker():
            with TraceContext() as worker_ctx:
                trace("worker.value", 1, {})
            seen["worker"] = worker_ctx

        with TraceContext() as ctx:
            thread = threading.Thread(target=worker)
            thread.start()
            thread.join()
            trace("main.value", 2, {})

            assert TraceContext.current() is ctx

        assert set(ctx.traces) == {"main.value"}
        assert set(seen["worker"].traces) == {"worker.value"}


class TestFormatCents:
    @pytest.mark.parametrize("value,unit,expected", [
        (139_625_000, "$", "$1.40M"),
        (250_000, "$", "$2.5K"),
        (1_234, "$", "$12.34"),
        (0, "$", "$0"),
        (12.5, "%", "12.50%"),
        (760, "m2", "760.00 m2"),
    ])
    def test_formats(self, value, unit, expected):
        assert format_cents(value, unit) == expected


class TestTraceIntegration:
    """Tracing while computing a summary."""

    def test_compute_summary_captures_traces(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        assert len(ctx.traces) > 0

    def test_key_formulas_are_traced(self, funded_snapshot):
        with TraceContext() as ctx:
            compute_summary(funded_snapshot)

        for key in [
            "summary.total_revenue_ex_gst",
            "summary.total_costs_ex_funding",
            "summary.total_costs",
            "summary.profit",
            "summary.development_margin",
            "summary.total_debt_interest",
            "summary.npv",
            "summary.irr",
        ]:
            assert key in ctx.traces, f"Missing trace: {key}"

    def test_every_registered_figure_is_traced(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        missing = set(FormulaRegistry.get_all()) - set(ctx.traces)
        assert missing == set()

    def test_traced_values_match_results(self, sample_snapshot):
        with TraceContext() as ctx:
            summary = compute_summary(sample_snapshot)

        assert ctx.get_trace("summary.total_costs").value == summary.total_costs
        assert ctx.get_trace("summary.profit").value == summary.profit
        assert ctx.get_trace("summary.irr").value == pytest.approx(summary.irr)

    def test_computed_formula_substitutes_values(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        profit = ctx.get_trace("summary.profit")
        assert profit.computed_formula == (
            "total_revenue_ex_gst - total_costs = $6.00M, $4.60M = $1.40M"
        )

    def test_format_inputs_uses_input_units(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        tax = ctx.get_trace("summary.tax_amount")
        assert tax.format_inputs() == "profit=$1.40M, tax_rate=30.00%"

    def test_traces_by_category(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        returns = ctx.get_traces_by_category("Returns")
        assert set(returns) == {"summary.npv", "summary.irr"}

    def test_calculation_chain_ends_with_target(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        chain = ctx.get_calculation_chain("summary.profit")
        paths = [t.field_path for t in chain]

        assert paths[-1] == "summary.profit"
        assert paths.index("summary.total_costs") < paths.index("summary.profit")
        assert paths.index("summary.land_cost") < paths.index("summary.total_costs_ex_funding")

    def test_summary_text_groups_by_category(self, sample_snapshot):
        with TraceContext() as ctx:
            compute_summary(sample_snapshot)

        text = ctx.summary()
        assert text.startswith(f"Trace Summary ({len(ctx.traces)} calculations traced)")
        assert "=== Profit" in text
        assert "=== Costs" in text
