"""FR 2052a position records consumed by the liquidity calculators."""

from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class ProductCategory(str, Enum):
    """Product categories of FR 2052a line items."""

    DEPOSITS = "deposits"
    LOANS = "loans"
    SECURITIES = "securities"
    DERIVATIVES = "derivatives"
    SECURED_FUNDING = "secured_funding"
    CREDIT_FACILITIES = "credit_facilities"
    LIQUIDITY_FACILITIES = "liquidity_facilities"
    CAPITAL = "capital"
    EQUITY = "equity"
    OTHER_ASSETS = "other_assets"
    OTHER_LIABILITIES = "other_liabilities"


class MaturityBucket(str, Enum):
    """Residual maturity buckets."""

    OVERNIGHT = "overnight"
    DAYS_2_7 = "2-7days"
    DAYS_8_30 = "8-30days"
    DAYS_31_90 = "31-90days"
    DAYS_91_180 = "91-180days"
    DAYS_181_365 = "181-365days"
    GT_1_YEAR = "gt_1year"
    OPEN = "open"


FACILITY_CATEGORIES = (ProductCategory.CREDIT_FACILITIES, ProductCategory.LIQUIDITY_FACILITIES)
CAPITAL_CATEGORIES = (ProductCategory.CAPITAL, ProductCategory.EQUITY)
WHOLESALE_COUNTERPARTIES = ("wholesale", "financial_institution")


class LineItem(BaseModel):
    """Single position of a reporting entity for one report date."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    # Identification
    product_id: str
    product_name: Optional[str] = None

    # Classification
    category: ProductCategory
    sub_product: Optional[str] = None
    maturity_bucket: MaturityBucket
    counterparty_type: str
    asset_class: Optional[str] = None
    currency: str = "USD"

    # Amounts
    outstanding_balance: float = 0.0
    projected_cash_inflow: float = 0.0
    projected_cash_outflow: float = 0.0
    encumbered_amount: float = 0.0

    # HQLA attributes
    is_hqla: bool = False
    hqla_level: Optional[int] = Field(None, ge=1, le=3, description="1 = Level 1, 2 = Level 2A, 3 = Level 2B")
    haircut: float = Field(0.0, ge=0, le=1)

    # Declared regulatory factors, used in preference to derived defaults
    runoff_rate: Optional[float] = Field(None, ge=0, le=1)
    required_stable_funding_factor: Optional[float] = Field(None, ge=0, le=1)
    available_stable_funding_factor: Optional[float] = Field(None, ge=0, le=1)

    internal_rating: Optional[str] = None
    report_date: Optional[date] = None

    def is_level_1(self) -> bool:
        """Level 1 HQLA flag."""
        return self.is_hqla and self.hqla_level == 1

    def unencumbered_balance(self) -> float:
        return self.outstanding_balance - self.encumbered_amount

    def is_wholesale(self) -> bool:
        return self.counterparty_type in WHOLESALE_COUNTERPARTIES
