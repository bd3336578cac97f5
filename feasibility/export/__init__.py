"""Export of feasibility results to DataFrames and Excel workbooks."""

from .tables import (
    SUMMARY_LINES,
    summary_to_frame,
    cashflow_to_frame,
    drawdowns_to_frame,
    comparison_to_frame,
)
from .workbook import (
    WorkbookConfig,
    generate_feasibility_workbook,
)

__all__ = [
    "SUMMARY_LINES",
    "summary_to_frame",
    "cashflow_to_frame",
    "drawdowns_to_frame",
    "comparison_to_frame",
    "WorkbookConfig",
    "generate_feasibility_workbook",
]
