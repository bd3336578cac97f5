"""Excel workbook export of a feasibility study.

Writes the summary, the monthly cashflow, facility drawdowns and the formula
audit trail to one workbook for review outside the application.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.utils.dataframe import dataframe_to_rows

from ..calculations.cashflow import CashflowMonth
from ..calculations.formula_registry import FormulaCategory, FormulaDefinition, FormulaRegistry
from ..calculations.summary import FeasibilitySummary
from ..calculations.trace import TraceContext, format_cents
from .tables import SUMMARY_LINES, cashflow_to_frame, drawdowns_to_frame


@dataclass
class WorkbookConfig:
    """Which sheets to include and how to title the report."""
    include_summary: bool = True
    include_cashflow: bool = True
    include_drawdowns: bool = True
    include_formula_registry: bool = True
    include_traced_values: bool = True
    project_name: str = "Development Feasibility"
    scenario_name: str = "Scenario"


def _format_summary_value(value, unit: str) -> str:
    if unit == "$":
        return f"${value / 100:,.2f}"
    if unit == "%":
        return f"{value:.2f}%"
    if unit == "m2":
        return f"{value:,.2f} m2"
    return f"{value:,}"


def _add_header_style(ws, row: int, cols: int) -> None:
    """Apply header styling to a row."""
    header_fill = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)

    for col in range(1, cols + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center")


def _add_section_header(ws, title: str, row: int) -> int:
    """Add a section header and return next row."""
    ws.cell(row=row, column=1, value=title)
    ws.cell(row=row, column=1).font = Font(bold=True, size=14)
    return row + 1


def _set_widths(ws, widths: Sequence[int]) -> None:
    for col, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = width


def generate_feasibility_workbook(
    summary: FeasibilitySummary,
    months: Sequence[CashflowMonth],
    trace_context: Optional[TraceContext] = None,
    config: Optional[WorkbookConfig] = None,
) -> bytes:
    """Generate an Excel workbook for one scenario.

    Args:
        summary: Result of compute_summary()
        months: Result of generate_cashflow() for the same snapshot
        trace_context: TraceContext the summary was computed under, if any
        config: Optional configuration for the report

    Returns:
        Excel file as bytes
    """
    if config is None:
        config = WorkbookConfig()

    wb = Workbook()
    wb.remove(wb.active)

    if config.include_summary:
        _create_summary_sheet(wb.create_sheet("Summary"), summary, config)

    if config.include_cashflow:
        _create_cashflow_sheet(wb.create_sheet("Cashflow"), months)

    if config.include_drawdowns and summary.facility_drawdowns:
        _create_drawdown_sheet(wb.create_sheet("Drawdowns"), summary)

    if config.include_formula_registry:
        _create_formula_registry_sheet(wb.create_sheet("Formula Registry"))

    if config.include_traced_values and trace_context and trace_context.traces:
        _create_traced_calculations_sheet(wb.create_sheet("Traced Calculations"), trace_context)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def _create_summary_sheet(ws, summary: FeasibilitySummary, config: WorkbookConfig) -> None:
    row = 1
    ws.cell(row=row, column=1, value=f"Feasibility: {config.project_name}")
    ws.cell(row=row, column=1).font = Font(bold=True, size=16)
    row += 1
    ws.cell(row=row, column=1, value=f"Scenario: {config.scenario_name}")
    row += 1
    ws.cell(row=row, column=1, value=f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    row += 2

    current_group = None
    for group, label, attr, unit in SUMMARY_LINES:
        if group != current_group:
            if current_group is not None:
                row += 1
            row = _add_section_header(ws, group, row)
            current_group = group
        ws.cell(row=row, column=1, value=label)
        ws.cell(row=row, column=2, value=_format_summary_value(getattr(summary, attr), unit))
        if attr in ("total_costs", "profit"):
            ws.cell(row=row, column=1).font = Font(bold=True)
            ws.cell(row=row, column=2).font = Font(bold=True)
        row += 1

    _set_widths(ws, [32, 22])


def _create_cashflow_sheet(ws, months: Sequence[CashflowMonth]) -> None:
    """Monthly cashflow in dollars, one row per month."""
    row = _add_section_header(ws, "Monthly Cashflow ($)", 1)
    row += 1

    df = cashflow_to_frame(months).reset_index()
    for r_offset, values in enumerate(dataframe_to_rows(df, index=False, header=True)):
        for col, value in enumerate(values, 1):
            ws.cell(row=row + r_offset, column=col, value=value)
    _add_header_style(ws, row, len(df.columns))

    _set_widths(ws, [8, 12] + [16] * (len(df.columns) - 2))


def _create_drawdown_sheet(ws, summary: FeasibilitySummary) -> None:
    row = _add_section_header(ws, "Facility Drawdowns ($)", 1)
    row += 1

    df = drawdowns_to_frame(summary.facility_drawdowns)
    for r_offset, values in enumerate(dataframe_to_rows(df, index=False, header=True)):
        for col, value in enumerate(values, 1):
            ws.cell(row=row + r_offset, column=col, value=value)
    _add_header_style(ws, row, len(df.columns))

    _set_widths(ws, [20, 8, 12] + [16] * (len(df.columns) - 3))


def _create_formula_registry_sheet(ws) -> None:
    row = _add_section_header(ws, "Formula Registry - All Calculation Definitions", 1)
    row += 1

    headers = ["Category", "Name", "Field Path", "Formula", "Inputs", "Notes"]
    for col, header in enumerate(headers, 1):
        ws.cell(row=row, column=col, value=header)
    _add_header_style(ws, row, len(headers))
    row += 1

    by_category: Dict[FormulaCategory, List[FormulaDefinition]] = {}
    for formula in FormulaRegistry.get_all().values():
        by_category.setdefault(formula.category, []).append(formula)

    for category in FormulaCategory:
        for formula in sorted(by_category.get(category, []), key=lambda f: f.field_path):
            ws.cell(row=row, column=1, value=category.value)
            ws.cell(row=row, column=2, value=formula.name)
            ws.cell(row=row, column=3, value=formula.field_path)
            ws.cell(row=row, column=4, value=formula.formula)
            ws.cell(row=row, column=5, value=", ".join(formula.inputs) or "-")
            ws.cell(row=row, column=6, value=formula.notes or "-")
            row += 1

    _set_widths(ws, [12, 34, 36, 60, 50, 50])


def _create_traced_calculations_sheet(ws, trace_context: TraceContext) -> None:
    row = _add_section_header(ws, "Traced Calculations - Actual Values Used", 1)
    row += 1

    headers = ["Field Path", "Result", "Inputs", "Computed Formula", "Notes"]
    for col, header in enumerate(headers, 1):
        ws.cell(row=row, column=col, value=header)
    _add_header_style(ws, row, len(headers))
    row += 1

    for trace_key in sorted(trace_context.traces):
        traced = trace_context.traces[trace_key]
        ws.cell(row=row, column=1, value=traced.field_path)
        ws.cell(row=row, column=2, value=format_cents(traced.value, traced.unit))
        ws.cell(row=row, column=3, value=traced.format_inputs() or "-")
        ws.cell(row=row, column=4, value=traced.computed_formula)
        ws.cell(row=row, column=5, value=traced.notes or "-")
        row += 1

    _set_widths(ws, [36, 18, 60, 90, 40])
