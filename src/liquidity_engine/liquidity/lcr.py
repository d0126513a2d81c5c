"""Liquidity Coverage Ratio (LCR) calculation for Basel III liquidity framework."""

from datetime import date
from enum import Enum
from typing import Dict, Iterable, Optional
from pydantic import BaseModel, ConfigDict
import logging

from ..core.config import LiquidityConfig
from ..core.line_item import (
    FACILITY_CATEGORIES, LineItem, ProductCategory,
)

logger = logging.getLogger(__name__)


class OutflowCategory(str, Enum):
    """Reporting categories of 30-day cash outflows."""

    RETAIL = "retail"
    WHOLESALE = "wholesale"
    SECURED = "secured"
    DERIVATIVES = "derivatives"
    OTHER_CONTRACTUAL = "other_contractual"
    OTHER_CONTINGENT = "other_contingent"


class HQLAAmounts(BaseModel):
    """HQLA stock after haircuts and caps."""

    model_config = ConfigDict(frozen=True)

    level_1: float
    level_2a: float
    level_2b: float
    total: float


class CashOutflows(BaseModel):
    """30-day stressed outflows by category."""

    model_config = ConfigDict(frozen=True)

    retail: float = 0.0
    wholesale: float = 0.0
    secured: float = 0.0
    derivatives: float = 0.0
    other_contractual: float = 0.0
    other_contingent: float = 0.0
    total: float = 0.0

    def by_category(self) -> Dict[OutflowCategory, float]:
        return {category: getattr(self, category.value) for category in OutflowCategory}


class CashInflows(BaseModel):
    """30-day inflows before the 75% cap."""

    model_config = ConfigDict(frozen=True)

    total: float = 0.0


class LCRDetails(BaseModel):
    """Outflow categories and capped inflows behind an LCR figure."""

    model_config = ConfigDict(frozen=True)

    retail_deposit_outflows: float
    wholesale_funding_outflows: float
    secured_funding_outflows: float
    derivatives_outflows: float
    other_contractual_outflows: float
    other_contingent_outflows: float
    capped_inflows: float


class LCRResult(BaseModel):
    """LCR calculation result."""

    model_config = ConfigDict(frozen=True)

    # HQLA components
    total_hqla: float
    level_1_hqla: float
    level_2a_hqla: float
    level_2b_hqla: float

    # Cash flow components
    total_cash_outflows: float
    total_cash_inflows: float
    net_cash_outflows: float

    # Final ratio
    lcr_ratio: float
    is_compliant: bool

    details: LCRDetails
    report_date: Optional[date] = None


class LCRCalculator:
    """
    Liquidity Coverage Ratio calculator over FR 2052a line items.

    LCR = High Quality Liquid Assets / Net Cash Outflows (30 days) >= 100%
    """

    def __init__(self, config: Optional[LiquidityConfig] = None):
        """Initialize LCR calculator."""
        self.config = config or LiquidityConfig()
        self.params = self.config.lcr
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def calculate_lcr(self, items: Iterable[LineItem],
                      report_date: Optional[date] = None) -> LCRResult:
        """Calculate LCR for one reporting period's line items."""

        items = list(items)
        self.logger.info(f"Calculating LCR over {len(items)} line items")

        hqla = self.compute_hqla(items)
        outflows = self.compute_cash_outflows(items)
        inflows = self.compute_cash_inflows(items)

        # Inflows capped at 75% of outflows, net outflows floored at 25% of gross
        capped_inflows = min(inflows.total, outflows.total * self.params.inflows.inflow_cap)
        net_cash_outflows = max(outflows.total - capped_inflows,
                                outflows.total * self.params.outflow_floor)

        lcr_ratio = hqla.total / net_cash_outflows if net_cash_outflows > 0 else 0.0

        return LCRResult(
            total_hqla=hqla.total,
            level_1_hqla=hqla.level_1,
            level_2a_hqla=hqla.level_2a,
            level_2b_hqla=hqla.level_2b,
            total_cash_outflows=outflows.total,
            total_cash_inflows=inflows.total,
            net_cash_outflows=net_cash_outflows,
            lcr_ratio=lcr_ratio,
            is_compliant=lcr_ratio >= self.params.minimum_ratio,
            details=LCRDetails(
                retail_deposit_outflows=outflows.retail,
                wholesale_funding_outflows=outflows.wholesale,
                secured_funding_outflows=outflows.secured,
                derivatives_outflows=outflows.derivatives,
                other_contractual_outflows=outflows.other_contractual,
                other_contingent_outflows=outflows.other_contingent,
                capped_inflows=capped_inflows,
            ),
            report_date=report_date or self._infer_report_date(items),
        )

    def compute_hqla(self, items: Iterable[LineItem]) -> HQLAAmounts:
        """Calculate High Quality Liquid Assets."""

        hqla_params = self.params.hqla
        level_1 = 0.0
        level_2a = 0.0
        level_2b = 0.0

        for item in items:
            if not item.is_hqla:
                continue

            after_haircut = item.unencumbered_balance() * (1 - item.haircut)

            if item.hqla_level == 1:
                level_1 += after_haircut
            elif item.hqla_level == 2:
                level_2a += after_haircut * hqla_params.factor_for(2)
            elif item.hqla_level == 3:
                level_2b += after_haircut * hqla_params.factor_for(3)

        # Level 2 caps are relative to Level 1 holdings
        level_2a = min(level_2a, level_1 * hqla_params.level_2a_cap.value)
        level_2b = min(level_2b, level_1 * hqla_params.level_2b_cap.value)

        hqla = HQLAAmounts(
            level_1=level_1,
            level_2a=level_2a,
            level_2b=level_2b,
            total=level_1 + level_2a + level_2b,
        )
        self.logger.debug(f"HQLA calculated: {hqla.model_dump()}")
        return hqla

    def compute_cash_outflows(self, items: Iterable[LineItem]) -> CashOutflows:
        """Calculate 30-day cash outflows."""

        totals = {category: 0.0 for category in OutflowCategory}

        for item in items:
            categorized = self._categorize_outflow(item)
            if categorized is None:
                continue
            category, amount = categorized
            totals[category] += amount

        outflows = CashOutflows(
            **{category.value: amount for category, amount in totals.items()},
            total=sum(totals.values()),
        )
        self.logger.debug(f"Cash outflows calculated: {outflows.model_dump()}")
        return outflows

    def compute_cash_inflows(self, items: Iterable[LineItem]) -> CashInflows:
        """Calculate 30-day cash inflows."""

        inflow_params = self.params.inflows
        total = 0.0

        for item in items:
            if item.projected_cash_inflow <= 0:
                continue

            if item.category == ProductCategory.LOANS:
                maturity_days = self.config.get_maturity_days(item.maturity_bucket.value)
                if maturity_days <= inflow_params.horizon_days:
                    total += item.projected_cash_inflow * inflow_params.loan_inflow_rate
            else:
                total += item.projected_cash_inflow * inflow_params.other_inflow_rate

        self.logger.debug(f"Cash inflows calculated: {total}")
        return CashInflows(total=total)

    def _categorize_outflow(self, item: LineItem):
        """Assign an item to one outflow category, returning (category, amount) or None."""

        rates = self.params.outflows

        if item.projected_cash_outflow <= 0 and item.category != ProductCategory.DEPOSITS:
            return None

        if item.category == ProductCategory.DEPOSITS:
            if item.counterparty_type == "retail":
                return OutflowCategory.RETAIL, item.outstanding_balance * self._get_retail_runoff_rate(item)
            if item.is_wholesale():
                return OutflowCategory.WHOLESALE, item.outstanding_balance * self._get_wholesale_runoff_rate(item)
            return None

        if item.category == ProductCategory.SECURED_FUNDING:
            rate = rates.secured_level_1 if item.is_level_1() else rates.secured_other
            return OutflowCategory.SECURED, item.outstanding_balance * rate

        if item.category == ProductCategory.DERIVATIVES:
            return OutflowCategory.DERIVATIVES, item.projected_cash_outflow

        if item.maturity_bucket.value in rates.other_contractual_buckets:
            return OutflowCategory.OTHER_CONTRACTUAL, item.projected_cash_outflow

        if item.category in FACILITY_CATEGORIES:
            return OutflowCategory.OTHER_CONTINGENT, item.outstanding_balance * rates.contingent_drawdown

        return None

    def _get_retail_runoff_rate(self, item: LineItem) -> float:
        """Runoff rate for retail deposits."""
        if item.runoff_rate is not None:
            return item.runoff_rate
        if item.sub_product == "stable":
            return self.params.outflows.retail_stable
        return self.params.outflows.retail_less_stable

    def _get_wholesale_runoff_rate(self, item: LineItem) -> float:
        """Runoff rate for wholesale and financial institution deposits."""
        if item.runoff_rate is not None:
            return item.runoff_rate
        if item.sub_product == "operational":
            return self.params.outflows.wholesale_operational
        if item.counterparty_type == "financial_institution":
            return self.params.outflows.wholesale_financial_institution
        return self.params.outflows.wholesale_other

    @staticmethod
    def _infer_report_date(items) -> Optional[date]:
        for item in items:
            if item.report_date is not None:
                return item.report_date
        return None
