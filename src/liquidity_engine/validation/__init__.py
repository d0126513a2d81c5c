"""FR 2052a data validation for the Liquidity Engine."""

from .models import (
    DataRow,
    NaturalKey,
    RuleCategory,
    RuleExecutionStat,
    Severity,
    ValidationError,
    ValidationRule,
    ValidationRunResult,
)
from .evaluators import EVALUATORS, ValidationContext
from .engine import ValidationRuleEngine

__all__ = [
    "DataRow",
    "NaturalKey",
    "RuleCategory",
    "RuleExecutionStat",
    "Severity",
    "ValidationError",
    "ValidationRule",
    "ValidationRunResult",
    "EVALUATORS",
    "ValidationContext",
    "ValidationRuleEngine",
]
