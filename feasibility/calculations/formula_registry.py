"""Formula registry for transparent feasibility auditing.

Every headline figure of the feasibility summary is registered here with its
symbolic formula and the figures it is computed from, so a traced value can
be explained back to its inputs.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set
from enum import Enum


class FormulaCategory(str, Enum):
    """Categories for organizing formulas."""
    INPUT = "Input"
    REVENUE = "Revenue"
    COSTS = "Costs"
    FUNDING = "Funding"
    PROFIT = "Profit"
    LEVERAGE = "Leverage"
    RETURNS = "Returns"


@dataclass
class FormulaDefinition:
    """Definition of a single calculation formula.

    Attributes:
        field_path: Dot-notation path to the field (e.g., "summary.total_costs")
        name: Human-readable name (e.g., "Total Costs")
        formula: Symbolic formula (e.g., "total_costs_ex_funding + total_funding_costs")
        inputs: List of input field paths that feed into this formula
        category: Category for grouping formulas
        unit: Display unit ("$" for cents, "%", "m2", "count")
        notes: Optional explanation or caveats
    """
    field_path: str
    name: str
    formula: str
    inputs: List[str]
    category: FormulaCategory
    unit: str = "$"
    notes: str = ""


class FormulaRegistry:
    """Central registry of all calculation formulas.

    Class-level mapping of field paths to their formula definitions, populated
    lazily on first lookup.
    """
    _formulas: Dict[str, FormulaDefinition] = {}
    _initialized: bool = False

    @classmethod
    def register(cls, definition: FormulaDefinition) -> None:
        """Register a formula definition."""
        cls._formulas[definition.field_path] = definition

    @classmethod
    def get(cls, field_path: str) -> Optional[FormulaDefinition]:
        """Get formula definition by field path."""
        cls._ensure_initialized()
        return cls._formulas.get(field_path)

    @classmethod
    def get_all(cls) -> Dict[str, FormulaDefinition]:
        """Get all registered formulas."""
        cls._ensure_initialized()
        return cls._formulas.copy()

    @classmethod
    def get_by_category(cls, category: FormulaCategory) -> List[FormulaDefinition]:
        """Get all formulas in a category."""
        cls._ensure_initialized()
        return [f for f in cls._formulas.values() if f.category == category]

    @classmethod
    def get_inputs(cls, field_path: str) -> List[str]:
        """Get the input field paths for a formula."""
        formula = cls.get(field_path)
        return formula.inputs if formula else []

    @classmethod
    def get_dependents(cls, field_path: str) -> List[str]:
        """Get all formulas that use this field as an input."""
        cls._ensure_initialized()
        return [
            path for path, formula in cls._formulas.items()
            if field_path in formula.inputs
        ]

    @classmethod
    def get_all_ancestors(cls, field_path: str) -> Set[str]:
        """Get all upstream dependencies recursively."""
        cls._ensure_initialized()
        ancestors = set()
        to_process = list(cls.get_inputs(field_path))

        while to_process:
            current = to_process.pop()
            if current not in ancestors:
                ancestors.add(current)
                to_process.extend(cls.get_inputs(current))

        return ancestors

    @classmethod
    def get_all_descendants(cls, field_path: str) -> Set[str]:
        """Get all downstream dependencies recursively."""
        cls._ensure_initialized()
        descendants = set()
        to_process = list(cls.get_dependents(field_path))

        while to_process:
            current = to_process.pop()
            if current not in descendants:
                descendants.add(current)
                to_process.extend(cls.get_dependents(current))

        return descendants

    @classmethod
    def _ensure_initialized(cls) -> None:
        """Ensure the registry is populated with formulas."""
        if not cls._initialized:
            _populate_registry()
            cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Reset the registry (mainly for testing)."""
        cls._formulas = {}
        cls._initialized = False


def _input(path: str, name: str, unit: str = "$", notes: str = "") -> FormulaDefinition:
    return FormulaDefinition(
        field_path=path,
        name=name,
        formula="Scenario input",
        inputs=[],
        category=FormulaCategory.INPUT,
        unit=unit,
        notes=notes,
    )


def _section_sum(section: str, name: str) -> FormulaDefinition:
    return FormulaDefinition(
        field_path=f"summary.{section}",
        name=name,
        formula=f"sum(resolved {section} line items)",
        inputs=[
            "inputs.construction_total",
            "inputs.grv_total",
            "inputs.total_land_size",
            "inputs.lot_count",
        ],
        category=FormulaCategory.COSTS,
        notes="Each item resolved from quantity, rate and rate type, then normalised ex GST",
    )


def _populate_registry() -> None:
    """Populate the registry with every summary formula."""

    # =========================================================================
    # INPUTS (scenario snapshot and the resolution pre-passes)
    # =========================================================================
    inputs = [
        _input("inputs.total_land_size", "Total Land Size", unit="m2",
               notes="Sum of lot land sizes, missing sizes count as 0"),
        _input("inputs.lot_count", "Lot Count", unit="count",
               notes="Number of land lots, 1 when there are none"),
        _input("inputs.unit_count", "Unit Count", unit="count"),
        _input("inputs.total_saleable_area", "Total Saleable Area", unit="m2"),
        _input("inputs.construction_total", "Flat Construction Total",
               notes="Construction items not expressed as a percentage (pass 1)"),
        _input("inputs.grv_total", "GRV Basis",
               notes="Raw sale prices, GST-inclusive"),
        _input("inputs.project_costs_total", "Project Costs Basis",
               notes="Land plus costs ex funding before % Project Costs items (pass 2)"),
        _input("inputs.target_margin_pct", "Target Margin", unit="%"),
        _input("inputs.tax_rate", "Tax Rate", unit="%"),
        _input("inputs.discount_rate", "Discount Rate", unit="%"),
    ]

    # =========================================================================
    # REVENUE
    # =========================================================================
    revenue = [
        FormulaDefinition(
            field_path="summary.total_revenue",
            name="Total Revenue (inc GST)",
            formula="sum(sale_price)",
            inputs=[],
            category=FormulaCategory.REVENUE,
        ),
        FormulaDefinition(
            field_path="summary.total_revenue_ex_gst",
            name="Total Revenue (ex GST)",
            formula="sum(normalize_to_ex_gst(sale_price, gst_status))",
            inputs=["summary.total_revenue"],
            category=FormulaCategory.REVENUE,
        ),
        FormulaDefinition(
            field_path="summary.net_sales_revenue",
            name="Net Sales Revenue",
            formula="total_revenue_ex_gst - agent_fees - legal_fees",
            inputs=["summary.total_revenue_ex_gst", "summary.agent_fees", "summary.legal_fees"],
            category=FormulaCategory.REVENUE,
        ),
        FormulaDefinition(
            field_path="summary.revenue_per_unit",
            name="Revenue per Unit",
            formula="round(total_revenue / unit_count)",
            inputs=["summary.total_revenue", "inputs.unit_count"],
            category=FormulaCategory.REVENUE,
            notes="Uses GST-inclusive revenue, unlike profit",
        ),
    ]

    # =========================================================================
    # COSTS
    # =========================================================================
    costs = [
        FormulaDefinition(
            field_path="summary.land_cost",
            name="Land Cost",
            formula="sum(purchase_price)",
            inputs=[],
            category=FormulaCategory.COSTS,
        ),
        _section_sum("acquisition_costs", "Acquisition Costs"),
        _section_sum("professional_fees", "Professional Fees"),
        _section_sum("construction_costs", "Construction Costs"),
        _section_sum("dev_fees", "Development Fees"),
        _section_sum("land_holding_costs", "Land Holding Costs"),
        _section_sum("contingency_costs", "Contingency"),
        _section_sum("agent_fees", "Agent Fees"),
        _section_sum("legal_fees", "Legal Fees"),
        _section_sum("marketing_costs", "Marketing Costs"),
        FormulaDefinition(
            field_path="summary.total_costs_ex_funding",
            name="Total Costs (ex Funding)",
            formula=("land_cost + acquisition_costs + professional_fees + construction_costs"
                     " + dev_fees + land_holding_costs + contingency_costs + agent_fees + legal_fees"),
            inputs=[
                "summary.land_cost",
                "summary.acquisition_costs",
                "summary.professional_fees",
                "summary.construction_costs",
                "summary.dev_fees",
                "summary.land_holding_costs",
                "summary.contingency_costs",
                "summary.agent_fees",
                "summary.legal_fees",
            ],
            category=FormulaCategory.COSTS,
            notes="Marketing is reported separately and not included",
        ),
        FormulaDefinition(
            field_path="summary.total_costs",
            name="Total Costs",
            formula="total_costs_ex_funding + total_funding_costs",
            inputs=["summary.total_costs_ex_funding", "summary.total_funding_costs"],
            category=FormulaCategory.COSTS,
        ),
        FormulaDefinition(
            field_path="summary.cost_per_unit",
            name="Cost per Unit",
            formula="round(total_costs / unit_count)",
            inputs=["summary.total_costs", "inputs.unit_count"],
            category=FormulaCategory.COSTS,
        ),
    ]

    # =========================================================================
    # FUNDING
    # =========================================================================
    funding = [
        _section_sum("facility_fees", "Facility Fees"),
        _section_sum("loan_fees", "Loan Fees"),
        _section_sum("equity_fees", "Equity Fees"),
        FormulaDefinition(
            field_path="summary.total_debt",
            name="Total Debt",
            formula="sum(facility size)",
            inputs=["summary.total_revenue_ex_gst", "summary.total_costs_ex_funding"],
            category=FormulaCategory.FUNDING,
            notes="Manual facilities use total_facility; auto facilities round(base x lvr_pct / 100)",
        ),
        FormulaDefinition(
            field_path="summary.total_debt_interest",
            name="Total Debt Interest",
            formula="sum(facility interest) + sum(round(principal x rate / 100 / 12 x term_months))",
            inputs=["summary.total_debt"],
            category=FormulaCategory.FUNDING,
            notes="Manual facilities use interest_provision; auto facilities use the drawdown schedule",
        ),
        FormulaDefinition(
            field_path="summary.total_equity",
            name="Total Equity",
            formula="sum(equity_amount)",
            inputs=[],
            category=FormulaCategory.FUNDING,
        ),
        FormulaDefinition(
            field_path="summary.total_funding_costs",
            name="Total Funding Costs",
            formula="facility_fees + loan_fees + equity_fees + total_debt_interest",
            inputs=[
                "summary.facility_fees",
                "summary.loan_fees",
                "summary.equity_fees",
                "summary.total_debt_interest",
            ],
            category=FormulaCategory.FUNDING,
        ),
    ]

    # =========================================================================
    # PROFIT
    # =========================================================================
    profit = [
        FormulaDefinition(
            field_path="summary.profit",
            name="Profit",
            formula="total_revenue_ex_gst - total_costs",
            inputs=["summary.total_revenue_ex_gst", "summary.total_costs"],
            category=FormulaCategory.PROFIT,
        ),
        FormulaDefinition(
            field_path="summary.profit_on_cost",
            name="Profit on Cost",
            formula="profit / total_costs x 100",
            inputs=["summary.profit", "summary.total_costs"],
            category=FormulaCategory.PROFIT,
            unit="%",
        ),
        FormulaDefinition(
            field_path="summary.development_margin",
            name="Development Margin",
            formula="profit / total_revenue_ex_gst x 100",
            inputs=["summary.profit", "summary.total_revenue_ex_gst"],
            category=FormulaCategory.PROFIT,
            unit="%",
        ),
        FormulaDefinition(
            field_path="summary.profit_on_project_cost",
            name="Profit on Project Cost",
            formula="profit / total_costs_ex_funding x 100",
            inputs=["summary.profit", "summary.total_costs_ex_funding"],
            category=FormulaCategory.PROFIT,
            unit="%",
        ),
        FormulaDefinition(
            field_path="summary.profit_per_unit",
            name="Profit per Unit",
            formula="round(profit / unit_count)",
            inputs=["summary.profit", "inputs.unit_count"],
            category=FormulaCategory.PROFIT,
        ),
        FormulaDefinition(
            field_path="summary.ebit",
            name="EBIT",
            formula="total_revenue_ex_gst - total_costs_ex_funding",
            inputs=["summary.total_revenue_ex_gst", "summary.total_costs_ex_funding"],
            category=FormulaCategory.PROFIT,
        ),
        FormulaDefinition(
            field_path="summary.tax_amount",
            name="Tax",
            formula="round(profit x tax_rate / 100) if profit > 0 else 0",
            inputs=["summary.profit", "inputs.tax_rate"],
            category=FormulaCategory.PROFIT,
        ),
        FormulaDefinition(
            field_path="summary.profit_after_tax",
            name="Profit After Tax",
            formula="profit - tax_amount",
            inputs=["summary.profit", "summary.tax_amount"],
            category=FormulaCategory.PROFIT,
        ),
        FormulaDefinition(
            field_path="summary.residual_land_value",
            name="Residual Land Value",
            formula="total_revenue_ex_gst - (total_costs - land_cost)",
            inputs=["summary.total_revenue_ex_gst", "summary.total_costs", "summary.land_cost"],
            category=FormulaCategory.PROFIT,
            notes="Land price at which the project breaks even",
        ),
        FormulaDefinition(
            field_path="summary.residual_land_value_at_target",
            name="Residual Land Value at Target Margin",
            formula="round(total_revenue_ex_gst x (1 - target_margin_pct / 100)) - (total_costs - land_cost)",
            inputs=[
                "summary.total_revenue_ex_gst",
                "summary.total_costs",
                "summary.land_cost",
                "inputs.target_margin_pct",
            ],
            category=FormulaCategory.PROFIT,
        ),
    ]

    # =========================================================================
    # LEVERAGE
    # =========================================================================
    leverage = [
        FormulaDefinition(
            field_path="summary.debt_leverage_pct",
            name="Debt Leverage",
            formula="total_debt / total_costs_ex_funding x 100",
            inputs=["summary.total_debt", "summary.total_costs_ex_funding"],
            category=FormulaCategory.LEVERAGE,
            unit="%",
        ),
        FormulaDefinition(
            field_path="summary.debt_to_cost_ratio",
            name="Loan to Cost (LTC)",
            formula="total_debt / total_costs x 100",
            inputs=["summary.total_debt", "summary.total_costs"],
            category=FormulaCategory.LEVERAGE,
            unit="%",
        ),
        FormulaDefinition(
            field_path="summary.debt_to_grv_ratio",
            name="Loan to Value (LVR)",
            formula="total_debt / total_revenue_ex_gst x 100",
            inputs=["summary.total_debt", "summary.total_revenue_ex_gst"],
            category=FormulaCategory.LEVERAGE,
            unit="%",
        ),
    ]

    # =========================================================================
    # RETURNS
    # =========================================================================
    returns = [
        FormulaDefinition(
            field_path="summary.npv",
            name="Net Present Value",
            formula="sum(net_cashflow[i] / (1 + discount_rate / 12) ^ (i + 1))",
            inputs=["inputs.discount_rate"],
            category=FormulaCategory.RETURNS,
            notes="Monthly net cashflow from the cashflow projection",
        ),
        FormulaDefinition(
            field_path="summary.irr",
            name="IRR (annualised)",
            formula="((1 + monthly_irr) ^ 12 - 1) x 100",
            inputs=[],
            category=FormulaCategory.RETURNS,
            unit="%",
            notes="0 when the cashflow has no sign change",
        ),
    ]

    for formula in inputs + revenue + costs + funding + profit + leverage + returns:
        FormulaRegistry.register(formula)
