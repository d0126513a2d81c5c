"""Itemized LCR component breakdowns for regulatory audit trails.

The breakdown regroups the same line items the LCR calculator consumes, using
finer composite keys, and attaches methodology text and regulatory reference
codes to every group. It deliberately does not call into ``LCRCalculator``:
the two passes are computed independently and cross-checked with
``ComponentBreakdownEngine.reconcile``.
"""

from typing import Dict, Iterable, List, NamedTuple, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, computed_field
import logging

from ..core.config import LiquidityConfig
from ..core.line_item import (
    FACILITY_CATEGORIES, LineItem, ProductCategory,
)
from .lcr import LCRResult, OutflowCategory

logger = logging.getLogger(__name__)


class InflowCategory:
    """Reporting categories of contractual inflows."""

    LOANS = "maturing_loans"
    REVERSE_REPO = "reverse_repo"
    SECURITIES = "maturing_securities"
    OTHER = "other_contractual"


HQLA_LEVEL_LABELS = {1: "Level 1", 2: "Level 2A", 3: "Level 2B"}


class HQLAComponentKey(NamedTuple):
    level: int
    product_category: str
    asset_class: Optional[str]


class FlowComponentKey(NamedTuple):
    category: str
    product_type: str
    counterparty_type: Optional[str]
    maturity_bucket: Optional[str]


class ComponentDetail(BaseModel):
    """Fields shared by every component variant."""

    model_config = ConfigDict(frozen=True)

    total_amount: float
    effective_rate: float
    computed_amount: float
    methodology: str
    regulatory_reference: str
    line_references: List[str] = Field(default_factory=list)
    record_count: int = 0


class HQLAComponent(ComponentDetail):
    """HQLA group by level, product category and asset class."""

    level: int
    hqla_category: str
    product_category: str
    asset_class: Optional[str] = None
    encumbered_amount: float = 0.0
    haircut_rate: float = 0.0
    amount_after_haircut: float = 0.0
    liquidity_value_factor: float = 1.0

    @computed_field
    @property
    def liquidity_value(self) -> float:
        return self.computed_amount

    @property
    def key(self) -> HQLAComponentKey:
        return HQLAComponentKey(self.level, self.product_category, self.asset_class)


class FlowComponent(ComponentDetail):
    """Outflow or inflow group by category, product type, counterparty and maturity."""

    category: str
    product_type: str
    counterparty_type: Optional[str] = None
    maturity_bucket: Optional[str] = None

    @property
    def key(self) -> FlowComponentKey:
        return FlowComponentKey(self.category, self.product_type,
                                self.counterparty_type, self.maturity_bucket)


class OutflowComponent(FlowComponent):
    """Outflow component; ``effective_rate`` is the blended runoff rate."""


class InflowComponent(FlowComponent):
    """Inflow component; ``effective_rate`` is the blended inflow rate."""


class LCRComponentBreakdown(BaseModel):
    """All three component lists for one dataset."""

    model_config = ConfigDict(frozen=True)

    hqla_components: List[HQLAComponent]
    outflow_components: List[OutflowComponent]
    inflow_components: List[InflowComponent]


class ReconciliationCheck(BaseModel):
    """Comparison of one calculator figure with its component sum."""

    model_config = ConfigDict(frozen=True)

    metric: str
    calculated: float
    component_sum: float
    difference: float
    within_tolerance: bool


class ReconciliationReport(BaseModel):
    """Outcome of cross-checking a breakdown against an LCR result."""

    model_config = ConfigDict(frozen=True)

    checks: List[ReconciliationCheck]
    tolerance: float

    @property
    def reconciled(self) -> bool:
        return all(check.within_tolerance for check in self.checks)

    def failures(self) -> List[ReconciliationCheck]:
        return [check for check in self.checks if not check.within_tolerance]


class _Group:
    """Accumulator for one component while the items are scanned."""

    __slots__ = ("base", "computed", "references", "extra")

    def __init__(self):
        self.base = 0.0
        self.computed = 0.0
        self.references: List[str] = []
        self.extra: Dict[str, float] = {}

    def add(self, item: LineItem, base: float, computed: float) -> None:
        self.base += base
        self.computed += computed
        self.references.append(item.product_id)


# (product type, reference code, methodology) for each outflow treatment
OUTFLOW_TREATMENTS = {
    "retail_stable": ("Stable Retail Deposits", "OUTFLOW_RETAIL_STABLE",
                      "Outstanding Balance x {rate} runoff rate"),
    "retail_less_stable": ("Less Stable Retail Deposits", "OUTFLOW_RETAIL_LESS_STABLE",
                           "Outstanding Balance x {rate} runoff rate"),
    "wholesale_operational": ("Operational Wholesale Deposits", "OUTFLOW_WHOLESALE_UNSECURED_OPERATIONAL",
                              "Outstanding Balance x {rate} runoff rate"),
    "wholesale_financial": ("Financial Institution Deposits", "OUTFLOW_WHOLESALE_UNSECURED_FINANCIAL",
                            "Outstanding Balance x {rate} runoff rate"),
    "wholesale_other": ("Non-Operational Wholesale Deposits", "OUTFLOW_WHOLESALE_UNSECURED_NONOPERATIONAL",
                        "Outstanding Balance x {rate} runoff rate"),
    "secured_level_1": ("Secured Funding Backed by Level 1 Assets", "OUTFLOW_SECURED_FUNDING_LEVEL_1",
                        "Outstanding Balance x {rate} runoff rate"),
    "secured_other": ("Secured Funding", "OUTFLOW_SECURED_FUNDING",
                      "Outstanding Balance x {rate} runoff rate"),
    "derivatives": ("Derivative Collateral Outflows", "OUTFLOW_DERIVATIVES",
                    "Projected contractual derivative outflow, taken in full"),
    "other_contractual": ("Other Contractual Outflows", "OUTFLOW_OTHER_CONTRACTUAL",
                          "Projected contractual outflow within 30 days, taken in full"),
    "credit_facilities": ("Credit Facilities", "OUTFLOW_CREDIT_FACILITIES",
                          "Committed Amount x {rate} drawdown rate"),
    "liquidity_facilities": ("Liquidity Facilities", "OUTFLOW_LIQUIDITY_FACILITIES",
                             "Committed Amount x {rate} drawdown rate"),
}

INFLOW_TREATMENTS = {
    "maturing_loans": ("Maturing Loans", "INFLOW_LOANS_MATURING"),
    "reverse_repo_central_bank": ("Reverse Repos with Central Banks", "INFLOW_REVERSE_REPO_CENTRAL_BANK"),
    "reverse_repo": ("Other Reverse Repos", "INFLOW_REVERSE_REPO"),
    "maturing_securities": ("Maturing Securities", "INFLOW_SECURITIES_MATURING"),
    "other_contractual": ("Other Contractual Inflows", "INFLOW_OTHER_CONTRACTUAL"),
}


def _format_rate(rate: float) -> str:
    """Render a decimal rate as a percentage, e.g. 0.03 -> '3%'."""
    pct = round(rate * 100, 6)
    return f"{pct:.0f}%" if pct.is_integer() else f"{pct:g}%"


class ComponentBreakdownEngine:
    """Regroups line items into regulator-facing HQLA, outflow and inflow components."""

    def __init__(self, config: Optional[LiquidityConfig] = None):
        """Initialize breakdown engine."""
        self.config = config or LiquidityConfig()
        self.params = self.config.lcr
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def calculate_components(self, items: Iterable[LineItem]) -> LCRComponentBreakdown:
        """Calculate all three component lists."""

        items = list(items)
        self.logger.info(f"Calculating LCR component breakdown over {len(items)} line items")

        return LCRComponentBreakdown(
            hqla_components=self.calculate_hqla_components(items),
            outflow_components=self.calculate_outflow_components(items),
            inflow_components=self.calculate_inflow_components(items),
        )

    def calculate_hqla_components(self, items: Iterable[LineItem]) -> List[HQLAComponent]:
        """Group HQLA holdings by (level, product category, asset class)."""

        groups: Dict[HQLAComponentKey, _Group] = {}
        haircuts: Dict[HQLAComponentKey, List[float]] = {}

        for item in items:
            if not item.is_hqla or item.hqla_level not in HQLA_LEVEL_LABELS:
                continue

            key = HQLAComponentKey(item.hqla_level, item.category.value, item.asset_class)
            group = groups.setdefault(key, _Group())
            factor = self.params.hqla.factor_for(item.hqla_level)

            after_haircut = item.unencumbered_balance() * (1 - item.haircut)
            group.add(item, item.outstanding_balance, after_haircut * factor)
            group.extra["encumbered"] = group.extra.get("encumbered", 0.0) + item.encumbered_amount
            group.extra["after_haircut"] = group.extra.get("after_haircut", 0.0) + after_haircut
            haircuts.setdefault(key, []).append(item.haircut)

        components = []
        for key, group in groups.items():
            factor = self.params.hqla.factor_for(key.level)
            label = HQLA_LEVEL_LABELS[key.level]
            key_haircuts = haircuts[key]
            avg_haircut = sum(key_haircuts) / len(key_haircuts)

            components.append(HQLAComponent(
                level=key.level,
                hqla_category=f"{label} {key.product_category.replace('_', ' ').title()}",
                product_category=key.product_category,
                asset_class=key.asset_class,
                total_amount=group.base,
                encumbered_amount=group.extra["encumbered"],
                haircut_rate=avg_haircut,
                amount_after_haircut=group.extra["after_haircut"],
                liquidity_value_factor=factor,
                computed_amount=group.computed,
                effective_rate=group.computed / group.base if group.base else 0.0,
                methodology=(f"{label} HQLA: (Balance - Encumbered) x (1 - Haircut) x "
                             f"{_format_rate(factor)} liquidity value, before Level 2 caps"),
                regulatory_reference=f"HQLA_{label.upper().replace(' ', '_')}",
                line_references=group.references,
                record_count=len(group.references),
            ))

        self.logger.debug(f"HQLA components: {len(components)}")
        return components

    def calculate_outflow_components(self, items: Iterable[LineItem]) -> List[OutflowComponent]:
        """Group 30-day outflows by (category, product type, counterparty, maturity bucket)."""

        groups: Dict[FlowComponentKey, _Group] = {}
        treatments: Dict[FlowComponentKey, Tuple[str, Optional[float]]] = {}

        for item in items:
            classified = self._classify_outflow(item)
            if classified is None:
                continue

            category, treatment, base, rate = classified
            product_type = OUTFLOW_TREATMENTS[treatment][0]
            key = FlowComponentKey(category.value, product_type,
                                   item.counterparty_type, item.maturity_bucket.value)
            groups.setdefault(key, _Group()).add(item, base, base * rate)

            # A group keeps a single nominal rate only while all its items share it
            if key not in treatments:
                treatments[key] = (treatment, rate)
            elif treatments[key][1] != rate:
                treatments[key] = (treatment, None)

        components = []
        for key, group in groups.items():
            treatment, nominal_rate = treatments[key]
            _, reference, methodology = OUTFLOW_TREATMENTS[treatment]
            if "{rate}" in methodology:
                methodology = methodology.format(
                    rate=_format_rate(nominal_rate) if nominal_rate is not None else "item-level")

            components.append(OutflowComponent(
                category=key.category,
                product_type=key.product_type,
                counterparty_type=key.counterparty_type,
                maturity_bucket=key.maturity_bucket,
                total_amount=group.base,
                effective_rate=group.computed / group.base if group.base else 0.0,
                computed_amount=group.computed,
                methodology=methodology,
                regulatory_reference=reference,
                line_references=group.references,
                record_count=len(group.references),
            ))

        self.logger.debug(f"Outflow components: {len(components)}")
        return components

    def calculate_inflow_components(self, items: Iterable[LineItem]) -> List[InflowComponent]:
        """Group contractual inflows by (category, product type, counterparty, maturity bucket)."""

        inflow_params = self.params.inflows
        groups: Dict[FlowComponentKey, _Group] = {}
        treatments: Dict[FlowComponentKey, Tuple[str, float]] = {}

        for item in items:
            if item.projected_cash_inflow <= 0:
                continue

            if item.category == ProductCategory.LOANS:
                maturity_days = self.config.get_maturity_days(item.maturity_bucket.value)
                if maturity_days > inflow_params.horizon_days:
                    continue
                category, treatment, rate = (InflowCategory.LOANS, "maturing_loans",
                                             inflow_params.loan_inflow_rate)
            # Non-loan inflows count in full at any maturity, matching LCRCalculator
            elif item.category == ProductCategory.SECURED_FUNDING and item.sub_product == "reverse_repo":
                treatment = ("reverse_repo_central_bank" if item.counterparty_type == "central_bank"
                             else "reverse_repo")
                category, rate = InflowCategory.REVERSE_REPO, inflow_params.other_inflow_rate
            elif item.category == ProductCategory.SECURITIES:
                category, treatment, rate = (InflowCategory.SECURITIES, "maturing_securities",
                                             inflow_params.other_inflow_rate)
            else:
                category, treatment, rate = (InflowCategory.OTHER, "other_contractual",
                                             inflow_params.other_inflow_rate)

            product_type = INFLOW_TREATMENTS[treatment][0]
            key = FlowComponentKey(category, product_type, item.counterparty_type, item.maturity_bucket.value)
            groups.setdefault(key, _Group()).add(item, item.projected_cash_inflow,
                                                 item.projected_cash_inflow * rate)
            treatments[key] = (treatment, rate)

        components = []
        for key, group in groups.items():
            treatment, rate = treatments[key]
            components.append(InflowComponent(
                category=key.category,
                product_type=key.product_type,
                counterparty_type=key.counterparty_type,
                maturity_bucket=key.maturity_bucket,
                total_amount=group.base,
                effective_rate=rate,
                computed_amount=group.computed,
                methodology=f"Contractual Cash Inflow x {_format_rate(rate)} inflow rate",
                regulatory_reference=INFLOW_TREATMENTS[treatment][1],
                line_references=group.references,
                record_count=len(group.references),
            ))

        self.logger.debug(f"Inflow components: {len(components)}")
        return components

    def reconcile(self, lcr_result: LCRResult, breakdown: LCRComponentBreakdown,
                  tolerance: float = 1e-6) -> ReconciliationReport:
        """Cross-check component sums against the calculator's figures.

        Level 2 component values are capped relative to the Level 1 component
        sum before comparison, mirroring the concentration caps. ``tolerance``
        is relative to the larger of 1.0 and the calculated figure.
        """

        hqla_params = self.params.hqla
        level_values = {level: 0.0 for level in HQLA_LEVEL_LABELS}
        for component in breakdown.hqla_components:
            level_values[component.level] += component.liquidity_value

        level_1 = level_values[1]
        level_2a = min(level_values[2], level_1 * hqla_params.level_2a_cap.value)
        level_2b = min(level_values[3], level_1 * hqla_params.level_2b_cap.value)

        outflow_sums = {category: 0.0 for category in OutflowCategory}
        for component in breakdown.outflow_components:
            outflow_sums[OutflowCategory(component.category)] += component.computed_amount

        details = lcr_result.details
        pairs = [
            ("level_1_hqla", lcr_result.level_1_hqla, level_1),
            ("level_2a_hqla", lcr_result.level_2a_hqla, level_2a),
            ("level_2b_hqla", lcr_result.level_2b_hqla, level_2b),
            ("total_hqla", lcr_result.total_hqla, level_1 + level_2a + level_2b),
            ("retail_deposit_outflows", details.retail_deposit_outflows, outflow_sums[OutflowCategory.RETAIL]),
            ("wholesale_funding_outflows", details.wholesale_funding_outflows,
             outflow_sums[OutflowCategory.WHOLESALE]),
            ("secured_funding_outflows", details.secured_funding_outflows, outflow_sums[OutflowCategory.SECURED]),
            ("derivatives_outflows", details.derivatives_outflows, outflow_sums[OutflowCategory.DERIVATIVES]),
            ("other_contractual_outflows", details.other_contractual_outflows,
             outflow_sums[OutflowCategory.OTHER_CONTRACTUAL]),
            ("other_contingent_outflows", details.other_contingent_outflows,
             outflow_sums[OutflowCategory.OTHER_CONTINGENT]),
            ("total_cash_outflows", lcr_result.total_cash_outflows, sum(outflow_sums.values())),
            ("total_cash_inflows", lcr_result.total_cash_inflows,
             sum(component.computed_amount for component in breakdown.inflow_components)),
        ]

        checks = []
        for metric, calculated, component_sum in pairs:
            difference = component_sum - calculated
            within = abs(difference) <= tolerance * max(1.0, abs(calculated))
            if not within:
                self.logger.warning(
                    f"Reconciliation break on {metric}: calculated {calculated}, components {component_sum}")
            checks.append(ReconciliationCheck(
                metric=metric,
                calculated=calculated,
                component_sum=component_sum,
                difference=difference,
                within_tolerance=within,
            ))

        return ReconciliationReport(checks=checks, tolerance=tolerance)

    def _classify_outflow(self, item: LineItem):
        """Return (category, treatment, base amount, rate) or None for items without an outflow."""

        rates = self.params.outflows

        if item.category == ProductCategory.DEPOSITS:
            if item.counterparty_type == "retail":
                treatment = "retail_stable" if item.sub_product == "stable" else "retail_less_stable"
                default = rates.retail_stable if item.sub_product == "stable" else rates.retail_less_stable
                rate = item.runoff_rate if item.runoff_rate is not None else default
                return OutflowCategory.RETAIL, treatment, item.outstanding_balance, rate

            if item.counterparty_type in ("wholesale", "financial_institution"):
                if item.sub_product == "operational":
                    treatment, default = "wholesale_operational", rates.wholesale_operational
                elif item.counterparty_type == "financial_institution":
                    treatment, default = "wholesale_financial", rates.wholesale_financial_institution
                else:
                    treatment, default = "wholesale_other", rates.wholesale_other
                rate = item.runoff_rate if item.runoff_rate is not None else default
                return OutflowCategory.WHOLESALE, treatment, item.outstanding_balance, rate

            return None

        # Non-deposit items only produce an outflow when one is projected
        if item.projected_cash_outflow <= 0:
            return None

        if item.category == ProductCategory.SECURED_FUNDING:
            if item.is_hqla and item.hqla_level == 1:
                return OutflowCategory.SECURED, "secured_level_1", item.outstanding_balance, rates.secured_level_1
            return OutflowCategory.SECURED, "secured_other", item.outstanding_balance, rates.secured_other

        if item.category == ProductCategory.DERIVATIVES:
            return OutflowCategory.DERIVATIVES, "derivatives", item.projected_cash_outflow, 1.0

        if item.maturity_bucket.value in rates.other_contractual_buckets:
            return OutflowCategory.OTHER_CONTRACTUAL, "other_contractual", item.projected_cash_outflow, 1.0

        if item.category in FACILITY_CATEGORIES:
            return (OutflowCategory.OTHER_CONTINGENT, item.category.value,
                    item.outstanding_balance, rates.contingent_drawdown)

        return None
