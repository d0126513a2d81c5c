"""Configuration management for the Liquidity Engine."""

from pathlib import Path
from typing import Dict, List, Optional
import yaml
from pydantic import BaseModel, Field


DEFAULT_MATURITY_DAYS = {
    "overnight": 1,
    "2-7days": 5,
    "8-30days": 20,
    "31-90days": 60,
    "91-180days": 135,
    "181-365days": 270,
    "gt_1year": 730,
    "open": 9999,
}


class CapRatio(BaseModel):
    """Concentration cap expressed as a fraction of Level 1 HQLA."""

    numerator: float
    denominator: float = Field(gt=0)

    @property
    def value(self) -> float:
        return self.numerator / self.denominator


class HQLAParameters(BaseModel):
    """Liquidity value factors and Level 2 caps."""

    level_factors: Dict[int, float] = Field(
        default_factory=lambda: {1: 1.00, 2: 0.85, 3: 0.50}
    )
    level_2a_cap: CapRatio = Field(default_factory=lambda: CapRatio(numerator=2, denominator=3))
    level_2b_cap: CapRatio = Field(default_factory=lambda: CapRatio(numerator=15, denominator=85))

    def factor_for(self, level: int) -> float:
        return self.level_factors.get(level, 0.0)


class OutflowParameters(BaseModel):
    """Runoff and drawdown rates for 30-day stressed outflows."""

    retail_stable: float = 0.03
    retail_less_stable: float = 0.10
    wholesale_operational: float = 0.25
    wholesale_financial_institution: float = 1.00
    wholesale_other: float = 0.40
    secured_level_1: float = 0.00
    secured_other: float = 1.00
    contingent_drawdown: float = 0.05
    other_contractual_buckets: List[str] = Field(
        default_factory=lambda: ["overnight", "2-7days", "8-30days"]
    )


class InflowParameters(BaseModel):
    """Inflow rates and the cap applied against outflows."""

    loan_inflow_rate: float = 0.50
    other_inflow_rate: float = 1.00
    horizon_days: int = 30
    inflow_cap: float = 0.75


class LCRParameters(BaseModel):
    """All LCR parameters."""

    hqla: HQLAParameters = Field(default_factory=HQLAParameters)
    outflows: OutflowParameters = Field(default_factory=OutflowParameters)
    inflows: InflowParameters = Field(default_factory=InflowParameters)
    outflow_floor: float = 0.25
    minimum_ratio: float = 1.00


class MaturityStep(BaseModel):
    """ASF factor applying below a residual maturity threshold."""

    below_days: int
    factor: float


class ASFParameters(BaseModel):
    """Available Stable Funding factors."""

    capital: float = 1.00
    retail_stable: float = 0.95
    retail_less_stable: float = 0.90
    wholesale_operational: float = 0.50
    wholesale_maturity_steps: List[MaturityStep] = Field(
        default_factory=lambda: [
            MaturityStep(below_days=180, factor=0.00),
            MaturityStep(below_days=365, factor=0.50),
        ]
    )
    wholesale_long_term: float = 1.00
    other_liabilities: float = 0.00


class RSFParameters(BaseModel):
    """Required Stable Funding factors."""

    hqla_level_factors: Dict[int, float] = Field(
        default_factory=lambda: {1: 0.00, 2: 0.15, 3: 0.50}
    )
    long_term_days: int = 365
    long_term_retail_loan: float = 0.65
    retail_loan_sub_products: List[str] = Field(default_factory=lambda: ["mortgage", "consumer"])
    other_loans: float = 0.85
    securities: float = 0.85
    derivatives: float = 1.00
    facilities: float = 0.05
    other_assets_sub_products: Dict[str, float] = Field(
        default_factory=lambda: {
            "cash": 0.00,
            "central_bank_reserves": 0.00,
            "fixed_assets": 1.00,
            "intangibles": 1.00,
        }
    )
    unclassified: float = 1.00


class NSFRParameters(BaseModel):
    """All NSFR parameters."""

    asf: ASFParameters = Field(default_factory=ASFParameters)
    rsf: RSFParameters = Field(default_factory=RSFParameters)
    minimum_ratio: float = 1.00


class ValidationParameters(BaseModel):
    """Parameters for the FR 2052a data validator."""

    iso_currencies: List[str] = Field(
        default_factory=lambda: ["USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD"]
    )
    # Registry field names mapped to data row attributes
    field_aliases: Dict[str, str] = Field(
        default_factory=lambda: {
            "MaturityBucket": "maturity_bucket",
            "Product": "product",
            "SubProduct": "sub_product",
            "Currency": "currency",
            "Internal": "internal_flag",
            "InternalCounterparty": "internal_counterparty",
            "CounterpartyType": "counterparty",
            "ReportingEntity": "legal_entity_id",
            "LendableValue": "lendable_value",
            "MarketValue": "market_value",
            "MaturityDate": "maturity_date",
        }
    )
    truthy_flags: List[str] = Field(default_factory=lambda: ["yes", "y", "true", "1"])


class LiquidityConfig(BaseModel):
    """Liquidity Engine configuration."""

    maturity_days: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_MATURITY_DAYS))
    lcr: LCRParameters = Field(default_factory=LCRParameters)
    nsfr: NSFRParameters = Field(default_factory=NSFRParameters)
    validation: ValidationParameters = Field(default_factory=ValidationParameters)

    @classmethod
    def load_default(cls) -> "LiquidityConfig":
        """Load default configuration from package yaml file."""
        config_path = Path(__file__).parent.parent / "config.yaml"
        return cls.load_from_file(config_path)

    @classmethod
    def load_from_file(cls, config_path: Path) -> "LiquidityConfig":
        """Load configuration from YAML file."""
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
        return cls(**config_data)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False, indent=2, sort_keys=False)

    def get_maturity_days(self, bucket: str) -> int:
        """Residual maturity in days for a maturity bucket; unknown buckets map to 0."""
        return self.maturity_days.get(bucket, 0)

    def field_for(self, registry_field: Optional[str]) -> Optional[str]:
        """Resolve a registry field name (e.g. 'MaturityBucket') to a data row attribute."""
        if not registry_field:
            return None
        return self.validation.field_aliases.get(registry_field, registry_field.lower())
