"""Net Stable Funding Ratio (NSFR) calculation for Basel III liquidity framework."""

from datetime import date
from typing import Iterable, Optional
from pydantic import BaseModel, ConfigDict
import logging

from ..core.config import LiquidityConfig
from ..core.line_item import (
    CAPITAL_CATEGORIES, FACILITY_CATEGORIES, LineItem, ProductCategory,
)

logger = logging.getLogger(__name__)


class AvailableStableFunding(BaseModel):
    """ASF by funding source."""

    model_config = ConfigDict(frozen=True)

    capital: float = 0.0
    retail_deposits: float = 0.0
    wholesale_funding: float = 0.0
    other_liabilities: float = 0.0
    total: float = 0.0


class RequiredStableFunding(BaseModel):
    """RSF by asset type."""

    model_config = ConfigDict(frozen=True)

    level_1_assets: float = 0.0
    level_2a_assets: float = 0.0
    level_2b_assets: float = 0.0
    loans: float = 0.0
    other_assets: float = 0.0
    total: float = 0.0


class NSFRDetails(BaseModel):
    """ASF and RSF breakdown behind an NSFR figure."""

    model_config = ConfigDict(frozen=True)

    capital_asf: float
    retail_deposits_asf: float
    wholesale_funding_asf: float
    other_liabilities_asf: float
    level_1_assets_rsf: float
    level_2a_assets_rsf: float
    level_2b_assets_rsf: float
    loans_rsf: float
    other_assets_rsf: float


class NSFRResult(BaseModel):
    """NSFR calculation result."""

    model_config = ConfigDict(frozen=True)

    available_stable_funding: float
    required_stable_funding: float
    nsfr_ratio: float
    is_compliant: bool

    details: NSFRDetails
    report_date: Optional[date] = None


class NSFRCalculator:
    """
    Net Stable Funding Ratio calculator over FR 2052a line items.

    NSFR = Available Stable Funding / Required Stable Funding >= 100%
    """

    def __init__(self, config: Optional[LiquidityConfig] = None):
        """Initialize NSFR calculator."""
        self.config = config or LiquidityConfig()
        self.params = self.config.nsfr
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def calculate_nsfr(self, items: Iterable[LineItem],
                       report_date: Optional[date] = None) -> NSFRResult:
        """Calculate NSFR for one reporting period's line items."""

        items = list(items)
        self.logger.info(f"Calculating NSFR over {len(items)} line items")

        asf = self.compute_available_stable_funding(items)
        rsf = self.compute_required_stable_funding(items)

        nsfr_ratio = asf.total / rsf.total if rsf.total > 0 else 0.0

        if report_date is None:
            report_date = next((item.report_date for item in items if item.report_date), None)

        return NSFRResult(
            available_stable_funding=asf.total,
            required_stable_funding=rsf.total,
            nsfr_ratio=nsfr_ratio,
            is_compliant=nsfr_ratio >= self.params.minimum_ratio,
            details=NSFRDetails(
                capital_asf=asf.capital,
                retail_deposits_asf=asf.retail_deposits,
                wholesale_funding_asf=asf.wholesale_funding,
                other_liabilities_asf=asf.other_liabilities,
                level_1_assets_rsf=rsf.level_1_assets,
                level_2a_assets_rsf=rsf.level_2a_assets,
                level_2b_assets_rsf=rsf.level_2b_assets,
                loans_rsf=rsf.loans,
                other_assets_rsf=rsf.other_assets,
            ),
            report_date=report_date,
        )

    def compute_available_stable_funding(self, items: Iterable[LineItem]) -> AvailableStableFunding:
        """Calculate Available Stable Funding."""

        capital = 0.0
        retail_deposits = 0.0
        wholesale_funding = 0.0
        other_liabilities = 0.0

        for item in items:
            if item.category in CAPITAL_CATEGORIES:
                capital += item.outstanding_balance * self.params.asf.capital
            elif item.category == ProductCategory.DEPOSITS and item.counterparty_type == "retail":
                retail_deposits += item.outstanding_balance * self._declared_or(
                    item.available_stable_funding_factor, self._get_retail_asf_factor(item))
            elif item.category == ProductCategory.DEPOSITS and item.is_wholesale():
                wholesale_funding += item.outstanding_balance * self._declared_or(
                    item.available_stable_funding_factor, self._get_wholesale_asf_factor(item))
            elif item.category == ProductCategory.OTHER_LIABILITIES:
                other_liabilities += item.outstanding_balance * self._declared_or(
                    item.available_stable_funding_factor, self.params.asf.other_liabilities)

        asf = AvailableStableFunding(
            capital=capital,
            retail_deposits=retail_deposits,
            wholesale_funding=wholesale_funding,
            other_liabilities=other_liabilities,
            total=capital + retail_deposits + wholesale_funding + other_liabilities,
        )
        self.logger.debug(f"ASF calculated: {asf.model_dump()}")
        return asf

    def compute_required_stable_funding(self, items: Iterable[LineItem]) -> RequiredStableFunding:
        """Calculate Required Stable Funding."""

        buckets = {
            "level_1_assets": 0.0,
            "level_2a_assets": 0.0,
            "level_2b_assets": 0.0,
            "loans": 0.0,
            "other_assets": 0.0,
        }

        for item in items:
            if item.category == ProductCategory.DEPOSITS or item.category in CAPITAL_CATEGORIES:
                continue

            rsf_factor = self._declared_or(item.required_stable_funding_factor, self.get_rsf_factor(item))
            rsf_amount = item.outstanding_balance * rsf_factor

            if item.is_hqla and item.hqla_level == 1:
                buckets["level_1_assets"] += rsf_amount
            elif item.is_hqla and item.hqla_level == 2:
                buckets["level_2a_assets"] += rsf_amount
            elif item.is_hqla and item.hqla_level == 3:
                buckets["level_2b_assets"] += rsf_amount
            elif item.category == ProductCategory.LOANS:
                buckets["loans"] += rsf_amount
            else:
                buckets["other_assets"] += rsf_amount

        rsf = RequiredStableFunding(**buckets, total=sum(buckets.values()))
        self.logger.debug(f"RSF calculated: {rsf.model_dump()}")
        return rsf

    def get_rsf_factor(self, item: LineItem) -> float:
        """Derived RSF factor for an item without a declared one."""

        rsf = self.params.rsf

        if item.is_hqla and item.hqla_level in rsf.hqla_level_factors:
            return rsf.hqla_level_factors[item.hqla_level]

        if item.category == ProductCategory.LOANS:
            maturity_days = self.config.get_maturity_days(item.maturity_bucket.value)
            if maturity_days >= rsf.long_term_days and item.sub_product in rsf.retail_loan_sub_products:
                return rsf.long_term_retail_loan
            return rsf.other_loans

        if item.category == ProductCategory.SECURITIES:
            return rsf.securities

        if item.category == ProductCategory.DERIVATIVES:
            return rsf.derivatives

        if item.category in FACILITY_CATEGORIES:
            return rsf.facilities

        if item.category == ProductCategory.OTHER_ASSETS and item.sub_product in rsf.other_assets_sub_products:
            return rsf.other_assets_sub_products[item.sub_product]

        # Conservative default for anything unclassified
        return rsf.unclassified

    def _get_retail_asf_factor(self, item: LineItem) -> float:
        if item.sub_product == "stable":
            return self.params.asf.retail_stable
        return self.params.asf.retail_less_stable

    def _get_wholesale_asf_factor(self, item: LineItem) -> float:
        asf = self.params.asf
        if item.sub_product == "operational":
            return asf.wholesale_operational

        maturity_days = self.config.get_maturity_days(item.maturity_bucket.value)
        for step in asf.wholesale_maturity_steps:
            if maturity_days < step.below_days:
                return step.factor
        return asf.wholesale_long_term

    @staticmethod
    def _declared_or(declared: Optional[float], default: float) -> float:
        return declared if declared is not None else default
