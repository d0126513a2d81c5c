"""Liquidity Engine - Regulatory liquidity calculation and FR 2052a validation framework."""

# Core engine and components
from .core.engine import LiquidityEngine, LiquidityResults
from .core.config import LiquidityConfig
from .core.line_item import LineItem, ProductCategory, MaturityBucket

# Liquidity ratios
from .liquidity.lcr import LCRCalculator, LCRResult
from .liquidity.nsfr import NSFRCalculator, NSFRResult

# Component breakdown
from .liquidity.breakdown import (
    ComponentBreakdownEngine,
    LCRComponentBreakdown,
    ReconciliationReport,
)

# Data validation
from .validation.engine import ValidationRuleEngine
from .validation.models import DataRow, ValidationRule, ValidationRunResult

# Ingestion
from .data.loader import IngestionError, line_items_from_frame, read_line_items_csv

__version__ = "0.1.0"
__author__ = "Liquidity Engine Contributors"

__all__ = [
    # Core components
    "LiquidityEngine",
    "LiquidityResults",
    "LiquidityConfig",
    "LineItem",
    "ProductCategory",
    "MaturityBucket",

    # Ratios
    "LCRCalculator",
    "LCRResult",
    "NSFRCalculator",
    "NSFRResult",

    # Breakdown
    "ComponentBreakdownEngine",
    "LCRComponentBreakdown",
    "ReconciliationReport",

    # Validation
    "ValidationRuleEngine",
    "DataRow",
    "ValidationRule",
    "ValidationRunResult",

    # Ingestion
    "IngestionError",
    "line_items_from_frame",
    "read_line_items_csv",
]
