"""Data models for the feasibility engine."""

from .lookups import (
    DevelopmentType,
    RateType,
    GstStatus,
    LineItemSection,
    HoldingFrequency,
    CalculationType,
    LvrMethod,
    LandLoanType,
    FacilityPriority,
    LoanType,
    GST_RATE,
    DEFAULT_PROJECT_LENGTH_MONTHS,
    SUMMARY_COST_SECTIONS,
    FUNDING_SECTIONS,
    CASHFLOW_SECTIONS,
    CASHFLOW_COLUMNS,
)
from .scenario import (
    Scenario,
    PaymentScheduleEntry,
    LandLot,
    LineItem,
    SalesUnit,
    DebtFacility,
    DebtLoan,
    EquityPartner,
    FeasibilitySnapshot,
    SnapshotError,
)

__all__ = [
    "DevelopmentType",
    "RateType",
    "GstStatus",
    "LineItemSection",
    "HoldingFrequency",
    "CalculationType",
    "LvrMethod",
    "LandLoanType",
    "FacilityPriority",
    "LoanType",
    "GST_RATE",
    "DEFAULT_PROJECT_LENGTH_MONTHS",
    "SUMMARY_COST_SECTIONS",
    "FUNDING_SECTIONS",
    "CASHFLOW_SECTIONS",
    "CASHFLOW_COLUMNS",
    "Scenario",
    "PaymentScheduleEntry",
    "LandLot",
    "LineItem",
    "SalesUnit",
    "DebtFacility",
    "DebtLoan",
    "EquityPartner",
    "FeasibilitySnapshot",
    "SnapshotError",
]
