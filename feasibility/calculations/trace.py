"""Runtime tracing of summary calculations.

While a ``TraceContext`` is active, every ``trace()`` call made by the
summary calculator records the figure, the inputs it was computed from and
the registered formula with those inputs substituted. Monetary values are
traced in cents and displayed in dollars.
"""

from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .formula_registry import FormulaRegistry, FormulaDefinition

_active_context: ContextVar[Optional["TraceContext"]] = ContextVar(
    "feasibility_trace_context", default=None
)


def format_cents(value: float, unit: str = "$") -> str:
    """Format a traced value for display (cents shown as dollars)."""
    if unit == "%":
        return f"{value:.2f}%"
    if unit != "$":
        return f"{value:,.2f} {unit}".strip()
    dollars = value / 100
    if abs(dollars) >= 1_000_000:
        return f"${dollars/1_000_000:,.2f}M"
    elif abs(dollars) >= 1_000:
        return f"${dollars/1_000:,.1f}K"
    elif dollars == 0:
        return "$0"
    else:
        return f"${dollars:,.2f}"


def _unit_of(field_path: str) -> str:
    formula_def = FormulaRegistry.get(field_path)
    return formula_def.unit if formula_def else "$"


@dataclass
class TracedValue:
    """One traced figure and the values it was computed from."""
    field_path: str
    value: float
    formula_def: Optional[FormulaDefinition]
    input_values: Dict[str, float]
    computed_formula: str
    timestamp: datetime = field(default_factory=datetime.now)
    notes: str = ""

    @property
    def unit(self) -> str:
        return self.formula_def.unit if self.formula_def else "$"

    @property
    def category(self) -> str:
        return self.formula_def.category.value if self.formula_def else "Unknown"

    def format_inputs(self) -> str:
        """Inputs as ``name=value`` pairs, each in its own unit."""
        return ", ".join(
            f"{path.split('.')[-1]}={format_cents(val, _unit_of(path))}"
            for path, val in self.input_values.items()
        )


class TraceContext:
    """Context manager collecting traces from the calculations run inside it.

    Usage:
        with TraceContext() as ctx:
            summary = compute_summary(snapshot)
        ctx.get_trace("summary.profit")

    Only one context is active per thread or task. Entering a context
    replaces whichever was active, and leaving any context clears it.
    """

    def __init__(self, enabled: bool = True):
        """
        Args:
            enabled: If False, trace() calls record nothing.
        """
        self.enabled = enabled
        self.traces: Dict[str, TracedValue] = {}
        self._start_time = datetime.now()

    def __enter__(self) -> "TraceContext":
        _active_context.set(self)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _active_context.set(None)

    def trace(self, field_path: str, value: float, input_values: Dict[str, float], notes: str = "") -> None:
        """Record one figure, replacing any earlier trace of the same path."""
        if not self.enabled:
            return

        formula_def = FormulaRegistry.get(field_path)
        self.traces[field_path] = TracedValue(
            field_path=field_path,
            value=value,
            formula_def=formula_def,
            input_values=input_values,
            computed_formula=self._substitute_values(
                formula_def.formula if formula_def else field_path,
                input_values,
                format_cents(value, formula_def.unit if formula_def else "$"),
            ),
            notes=notes,
        )

    @staticmethod
    def _substitute_values(formula: str, input_values: Dict[str, float], result: str) -> str:
        """E.g. "revenue - total_costs = $1.20M, $900.0K = $300.0K"."""
        if not input_values:
            return f"{formula} = {result}"
        shown = ", ".join(format_cents(val, _unit_of(path)) for path, val in input_values.items())
        return f"{formula} = {shown} = {result}"

    def get_trace(self, field_path: str) -> Optional[TracedValue]:
        return self.traces.get(field_path)

    def get_traces_by_category(self, category: str) -> Dict[str, TracedValue]:
        return {path: t for path, t in self.traces.items() if t.category == category}

    def get_calculation_chain(self, field_path: str) -> List[TracedValue]:
        """Every traced figure feeding ``field_path``, inputs first, target last."""
        ordered: Dict[str, TracedValue] = {}

        def visit(path: str) -> None:
            traced = self.traces.get(path)
            if traced is None or path in ordered:
                return
            for input_path in traced.input_values:
                visit(input_path)
            ordered[path] = traced

        visit(field_path)
        return list(ordered.values())

    def summary(self, per_category: int = 5) -> str:
        """Plain-text overview: the first few traces of each category."""
        by_category: Dict[str, List[TracedValue]] = {}
        for traced in self.traces.values():
            by_category.setdefault(traced.category, []).append(traced)

        lines = [
            f"Trace Summary ({len(self.traces)} calculations traced)",
            f"Duration: {datetime.now() - self._start_time}",
            "",
        ]
        for category in sorted(by_category):
            traces = by_category[category]
            lines.append(f"=== {category} ({len(traces)} traces) ===")
            lines.extend(f"  {t.field_path}: {t.computed_formula}" for t in traces[:per_category])
            if len(traces) > per_category:
                lines.append(f"  ... and {len(traces) - per_category} more")
            lines.append("")
        return "\n".join(lines)

    @staticmethod
    def current() -> Optional["TraceContext"]:
        return _active_context.get()


def trace(field_path: str, value: float, input_values: Dict[str, float], notes: str = "") -> float:
    """Trace ``value`` in the active context, if any, and return it unchanged.

    Usable inline:
        profit = trace("summary.profit", revenue - costs, {"summary.total_costs": costs, ...})
    """
    ctx = TraceContext.current()
    if ctx:
        ctx.trace(field_path, value, input_values, notes=notes)
    return value
