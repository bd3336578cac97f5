"""Lookup tables and enumerations for the feasibility engine."""

from enum import Enum
from typing import Dict, Optional, Tuple, Type, TypeVar


class DevelopmentType(str, Enum):
    """Kind of development a scenario models."""

    RESIDENTIAL = "residential"
    COMMERCIAL = "commercial"
    MIXED_USE = "mixed_use"
    INDUSTRIAL = "industrial"
    LAND_SUBDIVISION = "land_subdivision"


class RateType(str, Enum):
    """Unit basis a line item's rate is expressed in."""

    AMOUNT = "$ Amount"
    PER_M2 = "$/m2"
    PER_LOT = "$/Lot"
    PCT_CONSTRUCTION = "% Construction"
    PCT_GRV = "% GRV"
    PCT_PROJECT_COSTS = "% Project Costs"


class GstStatus(str, Enum):
    """Tax basis an entered amount is expressed in."""

    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"
    EXEMPT = "exempt"


class LineItemSection(str, Enum):
    """Cost section a line item belongs to."""

    ACQUISITION = "acquisition"
    PROFESSIONAL_FEES = "professional_fees"
    CONSTRUCTION = "construction"
    DEV_FEES = "dev_fees"
    LAND_HOLDING = "land_holding"
    CONTINGENCY = "contingency"
    MARKETING = "marketing"
    AGENT_FEES = "agent_fees"
    LEGAL_FEES = "legal_fees"
    FACILITY_FEES = "facility_fees"
    LOAN_FEES = "loan_fees"
    EQUITY_FEES = "equity_fees"


class HoldingFrequency(str, Enum):
    """Recurrence of a holding cost (outgoings, rates, insurance)."""

    ONCE = "once"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"


class CalculationType(str, Enum):
    """How a debt facility is sized."""

    MANUAL = "manual"  # total_facility and interest_provision entered by hand
    AUTO = "auto"  # sized from LVR, interest from the drawdown engine


class LvrMethod(str, Enum):
    """Base an auto-sized facility's LVR percentage applies to."""

    GRV_EX_GST = "grv_ex_gst"
    GRV_INC_GST = "grv_inc_gst"
    TDC_EX_GST = "tdc_ex_gst"
    TDC_INC_GST = "tdc_inc_gst"
    TCC_EX_GST = "tcc_ex_gst"
    TCC_INC_GST = "tcc_inc_gst"
    TCC_CONT_EX_GST = "tcc_cont_ex_gst"
    TCC_CONT_INC_GST = "tcc_cont_inc_gst"


class LandLoanType(str, Enum):
    """Interest treatment of a facility."""

    PROVISIONED = "provisioned"  # interest capitalised into the drawn balance
    SERVICED = "serviced"  # interest paid as it falls due


class FacilityPriority(str, Enum):
    """Ranking of a debt facility in the capital stack."""

    SENIOR = "senior"
    MEZZANINE = "mezzanine"
    JUNIOR = "junior"


class LoanType(str, Enum):
    """Repayment profile of a fixed loan (informational)."""

    INTEREST_ONLY = "interest_only"
    PRINCIPAL_AND_INTEREST = "principal_and_interest"


# Australian GST
GST_RATE = 0.10

DEFAULT_PROJECT_LENGTH_MONTHS = 24
DEFAULT_TARGET_MARGIN_PCT = 20.0
DEFAULT_TAX_RATE_PCT = 30.0
DEFAULT_DISCOUNT_RATE_PCT = 10.0


# Sections summed into the P&L, in report order. Marketing is not part of
# this set; see FeasibilitySummary.marketing_costs.
SUMMARY_COST_SECTIONS: Tuple[LineItemSection, ...] = (
    LineItemSection.ACQUISITION,
    LineItemSection.PROFESSIONAL_FEES,
    LineItemSection.CONSTRUCTION,
    LineItemSection.DEV_FEES,
    LineItemSection.LAND_HOLDING,
    LineItemSection.CONTINGENCY,
    LineItemSection.AGENT_FEES,
    LineItemSection.LEGAL_FEES,
)

FUNDING_SECTIONS: Tuple[LineItemSection, ...] = (
    LineItemSection.FACILITY_FEES,
    LineItemSection.LOAN_FEES,
    LineItemSection.EQUITY_FEES,
)

# Sections the cashflow projector distributes across months
CASHFLOW_SECTIONS: Tuple[LineItemSection, ...] = (
    LineItemSection.ACQUISITION,
    LineItemSection.PROFESSIONAL_FEES,
    LineItemSection.CONSTRUCTION,
    LineItemSection.DEV_FEES,
    LineItemSection.LAND_HOLDING,
    LineItemSection.CONTINGENCY,
    LineItemSection.MARKETING,
    LineItemSection.AGENT_FEES,
    LineItemSection.LEGAL_FEES,
    LineItemSection.FACILITY_FEES,
    LineItemSection.LOAN_FEES,
    LineItemSection.EQUITY_FEES,
)

# Cashflow column each section lands in. The funding sections share one column.
CASHFLOW_COLUMNS: Dict[LineItemSection, str] = {
    LineItemSection.ACQUISITION: "acquisition_costs",
    LineItemSection.PROFESSIONAL_FEES: "professional_fees",
    LineItemSection.CONSTRUCTION: "construction_costs",
    LineItemSection.DEV_FEES: "dev_fees",
    LineItemSection.LAND_HOLDING: "land_holding_costs",
    LineItemSection.CONTINGENCY: "contingency_costs",
    LineItemSection.MARKETING: "marketing_costs",
    LineItemSection.AGENT_FEES: "agent_fees",
    LineItemSection.LEGAL_FEES: "legal_fees",
    LineItemSection.FACILITY_FEES: "funding_costs",
    LineItemSection.LOAN_FEES: "funding_costs",
    LineItemSection.EQUITY_FEES: "funding_costs",
}

# Rate types that reference another computed total
PERCENTAGE_RATE_TYPES: Tuple[RateType, ...] = (
    RateType.PCT_CONSTRUCTION,
    RateType.PCT_GRV,
    RateType.PCT_PROJECT_COSTS,
)

FREQUENCY_MONTHS: Dict[HoldingFrequency, int] = {
    HoldingFrequency.MONTHLY: 1,
    HoldingFrequency.QUARTERLY: 3,
    HoldingFrequency.SEMI_ANNUALLY: 6,
    HoldingFrequency.ANNUALLY: 12,
}

# Unknown priorities rank after junior
FACILITY_PRIORITY_ORDER: Dict[FacilityPriority, int] = {
    FacilityPriority.SENIOR: 1,
    FacilityPriority.MEZZANINE: 2,
    FacilityPriority.JUNIOR: 3,
}
UNRANKED_PRIORITY = 99


E = TypeVar("E", bound=Enum)


def as_member(enum_cls: Type[E], value) -> Optional[E]:
    """Look up the enum member for a raw value, or None if it is not recognised.

    Records coming from the data layer carry plain strings; enum members hash
    by name, so dictionary lookups must go through the member.
    """
    try:
        return enum_cls(value)
    except ValueError:
        return None
