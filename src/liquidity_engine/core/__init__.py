"""Core components of the Liquidity Engine."""

from .config import LiquidityConfig
from .line_item import LineItem, MaturityBucket, ProductCategory
from .engine import LiquidityEngine, LiquidityResults

__all__ = [
    "LiquidityConfig",
    "LineItem",
    "MaturityBucket",
    "ProductCategory",
    "LiquidityEngine",
    "LiquidityResults",
]
