"""Main Liquidity Engine coordinating ratio, breakdown and validation runs."""

from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional
from pydantic import BaseModel
import logging

from .config import LiquidityConfig
from .line_item import LineItem
from ..liquidity.lcr import LCRCalculator, LCRResult
from ..liquidity.nsfr import NSFRCalculator, NSFRResult
from ..liquidity.breakdown import ComponentBreakdownEngine, LCRComponentBreakdown, ReconciliationReport
from ..validation.engine import ValidationRuleEngine
from ..validation.models import ValidationRule, ValidationRunResult


logger = logging.getLogger(__name__)


class LiquidityResults(BaseModel):
    """Complete liquidity results for one reporting entity and date."""

    lcr: LCRResult
    nsfr: NSFRResult
    breakdown: LCRComponentBreakdown
    reconciliation: ReconciliationReport

    report_date: Optional[date] = None

    def meets_minimum_requirements(self) -> bool:
        """Check both ratios against their regulatory minimums."""
        return self.lcr.is_compliant and self.nsfr.is_compliant

    def get_summary_metrics(self) -> Dict[str, Any]:
        """Get summary of key metrics."""
        return {
            "lcr": {
                "ratio": f"{self.lcr.lcr_ratio:.2%}",
                "total_hqla": self.lcr.total_hqla,
                "net_cash_outflows": self.lcr.net_cash_outflows,
                "is_compliant": self.lcr.is_compliant,
            },
            "nsfr": {
                "ratio": f"{self.nsfr.nsfr_ratio:.2%}",
                "available_stable_funding": self.nsfr.available_stable_funding,
                "required_stable_funding": self.nsfr.required_stable_funding,
                "is_compliant": self.nsfr.is_compliant,
            },
            "components": {
                "hqla": len(self.breakdown.hqla_components),
                "outflows": len(self.breakdown.outflow_components),
                "inflows": len(self.breakdown.inflow_components),
                "reconciled": self.reconciliation.reconciled,
            },
        }


class LiquidityEngine:
    """Main engine for LCR, NSFR and FR 2052a data validation."""

    def __init__(self, config: Optional[LiquidityConfig] = None,
                 max_workers: Optional[int] = None):
        """Initialize the engine; all calculators share one configuration."""
        self.config = config or LiquidityConfig.load_default()

        self.lcr_calculator = LCRCalculator(self.config)
        self.nsfr_calculator = NSFRCalculator(self.config)
        self.breakdown_engine = ComponentBreakdownEngine(self.config)
        self.validator = ValidationRuleEngine(self.config, max_workers=max_workers)

        logger.info("Liquidity Engine initialized")

    def calculate_lcr(self, items: Iterable[LineItem], report_date: Optional[date] = None) -> LCRResult:
        return self.lcr_calculator.calculate_lcr(items, report_date)

    def calculate_nsfr(self, items: Iterable[LineItem], report_date: Optional[date] = None) -> NSFRResult:
        return self.nsfr_calculator.calculate_nsfr(items, report_date)

    def calculate_components(self, items: Iterable[LineItem]) -> LCRComponentBreakdown:
        return self.breakdown_engine.calculate_components(items)

    def validate(self, rows: Iterable[Any], rules: Iterable[ValidationRule], submission_id: str,
                 allowed_values: Optional[Mapping[str, Iterable[str]]] = None,
                 legal_entities: Optional[Iterable[str]] = None) -> ValidationRunResult:
        return self.validator.validate(rows, rules, submission_id,
                                       allowed_values=allowed_values,
                                       legal_entities=legal_entities)

    def calculate_all(self, items: Iterable[LineItem], report_date: Optional[date] = None,
                      tolerance: float = 1e-6) -> LiquidityResults:
        """Calculate both ratios and the reconciled LCR component breakdown."""
        items = list(items)
        logger.info(f"Calculating liquidity metrics for {len(items)} line items")

        lcr = self.calculate_lcr(items, report_date)
        nsfr = self.calculate_nsfr(items, report_date)
        breakdown = self.calculate_components(items)
        reconciliation = self.breakdown_engine.reconcile(lcr, breakdown, tolerance=tolerance)

        logger.debug(f"LCR {lcr.lcr_ratio:.4f}, NSFR {nsfr.nsfr_ratio:.4f}, "
                     f"reconciled: {reconciliation.reconciled}")

        return LiquidityResults(
            lcr=lcr,
            nsfr=nsfr,
            breakdown=breakdown,
            reconciliation=reconciliation,
            report_date=lcr.report_date,
        )
