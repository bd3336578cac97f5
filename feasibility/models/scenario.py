"""Scenario snapshot: the in-memory input of every feasibility calculation.

The persistence layer loads one scenario and all of its child records and
hands them over as a ``FeasibilitySnapshot``. All monetary fields are integer
cents. Optional numeric fields may be ``None``; the engine treats a missing
number as 0 (or as the documented default) rather than failing.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type, Union

from .lookups import (
    CalculationType,
    DevelopmentType,
    FacilityPriority,
    GstStatus,
    HoldingFrequency,
    LandLoanType,
    LineItemSection,
    LoanType,
    LvrMethod,
    RateType,
    DEFAULT_DISCOUNT_RATE_PCT,
    DEFAULT_PROJECT_LENGTH_MONTHS,
    DEFAULT_TARGET_MARGIN_PCT,
    DEFAULT_TAX_RATE_PCT,
)

Number = Union[int, float]


class SnapshotError(ValueError):
    """Raised when raw scenario data cannot be turned into a snapshot."""


@dataclass(frozen=True)
class Scenario:
    """Root record of one feasibility study."""

    name: str = "Scenario"
    project_id: Optional[str] = None
    development_type: DevelopmentType = DevelopmentType.RESIDENTIAL
    project_length_months: Optional[int] = DEFAULT_PROJECT_LENGTH_MONTHS
    project_lots: Optional[int] = None
    start_date: Optional[date] = None  # Anchors month 1 of the cashflow

    # Return assumptions (percent)
    target_margin_pct: Optional[float] = DEFAULT_TARGET_MARGIN_PCT
    tax_rate: Optional[float] = DEFAULT_TAX_RATE_PCT
    discount_rate: Optional[float] = DEFAULT_DISCOUNT_RATE_PCT

    # Legacy cached totals written by older screens. Never read or written here.
    total_revenue: Optional[int] = None
    total_costs: Optional[int] = None
    profit: Optional[int] = None
    profit_on_cost: Optional[float] = None


@dataclass(frozen=True)
class PaymentScheduleEntry:
    """Progress payment towards a land purchase."""

    month: Optional[int] = None  # 1-based
    amount: Optional[int] = None


@dataclass(frozen=True)
class LandLot:
    """A parcel of land being acquired."""

    name: str = ""
    land_size_m2: Optional[float] = None
    purchase_price: Optional[int] = None
    deposit_amount: Optional[int] = None
    deposit_month: Optional[int] = None  # 1-based, defaults to 1
    settlement_month: Optional[int] = None  # 1-based, defaults to 1
    payment_schedule: List[PaymentScheduleEntry] = field(default_factory=list)
    margin_scheme_applied: bool = False


@dataclass(frozen=True)
class LineItem:
    """A single cost entry.

    ``amount_ex_gst`` is whatever the data layer last stored; the engine
    always re-resolves the amount from quantity, rate and rate type.
    """

    section: Union[LineItemSection, str] = LineItemSection.CONSTRUCTION
    name: str = ""
    rate_type: Union[RateType, str] = RateType.AMOUNT
    quantity: Optional[float] = None  # 0 or missing means 1
    rate: Optional[float] = None
    gst_status: Union[GstStatus, str] = GstStatus.EXCLUSIVE
    amount_ex_gst: Optional[int] = None
    frequency: Union[HoldingFrequency, str] = HoldingFrequency.ONCE
    cashflow_start_month: Optional[int] = None  # 1-based, defaults to 1
    cashflow_span_months: Optional[int] = None  # defaults to 1


@dataclass(frozen=True)
class SalesUnit:
    """One sellable unit."""

    name: str = ""
    sale_price: Optional[int] = None
    gst_status: Union[GstStatus, str] = GstStatus.INCLUSIVE
    settlement_month: Optional[int] = None  # 1-based, defaults to final month
    area_m2: Optional[float] = None


@dataclass(frozen=True)
class DebtFacility:
    """A construction or land debt facility."""

    name: str = ""
    total_facility: Optional[int] = None
    interest_rate: Optional[float] = None  # Annual, percent
    term_months: Optional[int] = None
    lvr_method: Union[LvrMethod, str] = LvrMethod.TDC_EX_GST
    lvr_pct: Optional[float] = None
    interest_provision: Optional[int] = None  # Trusted as given for manual facilities
    calculation_type: Union[CalculationType, str] = CalculationType.MANUAL
    priority: Union[FacilityPriority, str] = FacilityPriority.SENIOR
    land_loan_type: Union[LandLoanType, str] = LandLoanType.PROVISIONED
    sort_order: int = 0


@dataclass(frozen=True)
class DebtLoan:
    """A fixed loan with simple interest over its term."""

    name: str = ""
    principal_amount: Optional[int] = None
    interest_rate: Optional[float] = None  # Annual, percent
    term_months: Optional[int] = None
    loan_type: Union[LoanType, str] = LoanType.INTEREST_ONLY


@dataclass(frozen=True)
class EquityPartner:
    """A capital contributor."""

    name: str = ""
    equity_amount: Optional[int] = None
    return_percentage: Optional[float] = None
    is_developer_equity: bool = False


@dataclass(frozen=True)
class FeasibilitySnapshot:
    """Fully loaded scenario plus every child record."""

    scenario: Scenario = field(default_factory=Scenario)
    land_lots: List[LandLot] = field(default_factory=list)
    line_items: List[LineItem] = field(default_factory=list)
    sales_units: List[SalesUnit] = field(default_factory=list)
    debt_facilities: List[DebtFacility] = field(default_factory=list)
    debt_loans: List[DebtLoan] = field(default_factory=list)
    equity_partners: List[EquityPartner] = field(default_factory=list)

    @property
    def project_length_months(self) -> int:
        """Cashflow horizon, falling back to the default when unset or non-positive."""
        months = self.scenario.project_length_months or 0
        return months if months > 0 else DEFAULT_PROJECT_LENGTH_MONTHS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FeasibilitySnapshot":
        """Build a snapshot from plain row dictionaries.

        Expected keys: ``scenario`` (mapping) and optionally ``land_lots``,
        ``line_items``, ``sales_units``, ``debt_facilities``, ``debt_loans``,
        ``equity_partners`` (lists of mappings). Unknown keys are ignored.

        Raises:
            SnapshotError: If the structure is malformed or a numeric field
                holds something that is not a number.
        """
        if not isinstance(data, Mapping):
            raise SnapshotError(f"Snapshot data must be a mapping, got {type(data).__name__}")

        scenario_row = data.get("scenario") or {}
        if not isinstance(scenario_row, Mapping):
            raise SnapshotError("'scenario' must be a mapping")

        scenario = _build_record(Scenario, scenario_row)
        if isinstance(scenario.start_date, str):
            scenario = _replace_start_date(scenario)
        elif scenario.start_date is not None and not isinstance(scenario.start_date, date):
            raise SnapshotError(
                f"start_date must be a date or YYYY-MM-DD string, "
                f"got {type(scenario.start_date).__name__}"
            )

        lots = []
        for row in _rows(data, "land_lots"):
            schedule = [
                _build_record(PaymentScheduleEntry, entry)
                for entry in _rows(row, "payment_schedule")
            ]
            lot_row = {k: v for k, v in row.items() if k != "payment_schedule"}
            lot_row["payment_schedule"] = schedule
            lots.append(_build_record(LandLot, lot_row))

        return cls(
            scenario=scenario,
            land_lots=lots,
            line_items=[_build_record(LineItem, r) for r in _rows(data, "line_items")],
            sales_units=[_build_record(SalesUnit, r) for r in _rows(data, "sales_units")],
            debt_facilities=[_build_record(DebtFacility, r) for r in _rows(data, "debt_facilities")],
            debt_loans=[_build_record(DebtLoan, r) for r in _rows(data, "debt_loans")],
            equity_partners=[_build_record(EquityPartner, r) for r in _rows(data, "equity_partners")],
        )


# Enum-typed fields per record. Unrecognised values are kept as raw strings so
# the engine can apply its fallbacks (e.g. unknown rate type -> "$ Amount").
_ENUM_FIELDS: Dict[str, Type[Enum]] = {
    "development_type": DevelopmentType,
    "section": LineItemSection,
    "rate_type": RateType,
    "gst_status": GstStatus,
    "frequency": HoldingFrequency,
    "lvr_method": LvrMethod,
    "calculation_type": CalculationType,
    "priority": FacilityPriority,
    "land_loan_type": LandLoanType,
    "loan_type": LoanType,
}

_TEXT_FIELDS = {"name", "project_id"}
_FLAG_FIELDS = {"margin_scheme_applied", "is_developer_equity"}
_PASSTHROUGH_FIELDS = {"payment_schedule", "start_date"}

# Month numbers, horizons and counts index buckets and ranges, so they must be whole
_WHOLE_NUMBER_FIELDS = {
    "project_length_months",
    "project_lots",
    "deposit_month",
    "settlement_month",
    "month",
    "cashflow_start_month",
    "cashflow_span_months",
    "term_months",
    "sort_order",
}


def _rows(data: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    rows = data.get(key) or []
    if not isinstance(rows, (list, tuple)):
        raise SnapshotError(f"'{key}' must be a list of records")
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            raise SnapshotError(f"'{key}[{i}]' must be a mapping")
    return list(rows)


def _coerce_number(name: str, value: Any) -> Optional[Number]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise SnapshotError(f"Field '{name}' expects a number, got a boolean")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            raise SnapshotError(f"Field '{name}' expects a number, got {value!r}") from None
        return int(parsed) if parsed.is_integer() else parsed
    raise SnapshotError(f"Field '{name}' expects a number, got {type(value).__name__}")


def _coerce_whole_number(name: str, value: Any) -> Optional[int]:
    number = _coerce_number(name, value)
    if isinstance(number, float):
        if not number.is_integer():
            raise SnapshotError(f"Field '{name}' expects a whole number, got {value!r}")
        return int(number)
    return number


def _coerce_enum(enum_cls: Type[Enum], value: Any) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _build_record(record_cls, row: Mapping[str, Any]):
    kwargs: Dict[str, Any] = {}
    for f in fields(record_cls):
        if f.name not in row:
            continue
        value = row[f.name]
        if f.name in _PASSTHROUGH_FIELDS:
            kwargs[f.name] = value
        elif f.name in _ENUM_FIELDS:
            if value is not None:
                kwargs[f.name] = _coerce_enum(_ENUM_FIELDS[f.name], value)
        elif f.name in _TEXT_FIELDS:
            kwargs[f.name] = "" if value is None else str(value)
        elif f.name in _FLAG_FIELDS:
            kwargs[f.name] = bool(value)
        elif f.name == "sort_order":
            kwargs[f.name] = _coerce_whole_number(f.name, value) or 0
        elif f.name in _WHOLE_NUMBER_FIELDS:
            kwargs[f.name] = _coerce_whole_number(f.name, value)
        else:
            kwargs[f.name] = _coerce_number(f.name, value)
    return record_cls(**kwargs)


def _replace_start_date(scenario: Scenario) -> Scenario:
    raw = scenario.start_date
    try:
        parsed = date.fromisoformat(raw[:10])
    except ValueError:
        raise SnapshotError(f"Invalid start_date {raw!r}, expected YYYY-MM-DD") from None
    return replace(scenario, start_date=parsed)
