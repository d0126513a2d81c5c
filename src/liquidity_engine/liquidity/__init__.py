"""Liquidity ratio calculations for the Liquidity Engine."""

from .lcr import LCRCalculator, LCRResult, OutflowCategory
from .nsfr import NSFRCalculator, NSFRResult
from .breakdown import (
    ComponentBreakdownEngine,
    HQLAComponent,
    InflowComponent,
    LCRComponentBreakdown,
    OutflowComponent,
    ReconciliationReport,
)

__all__ = [
    "LCRCalculator",
    "LCRResult",
    "OutflowCategory",
    "NSFRCalculator",
    "NSFRResult",
    "ComponentBreakdownEngine",
    "HQLAComponent",
    "OutflowComponent",
    "InflowComponent",
    "LCRComponentBreakdown",
    "ReconciliationReport",
]
