"""Rule engine validating raw FR 2052a rows against the active rule registry."""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging
import time

from ..core.config import LiquidityConfig
from .evaluators import EVALUATORS, EvaluatorOutput, ValidationContext
from .models import (
    DataRow, RuleExecutionStat, Severity, ValidationError, ValidationRule, ValidationRunResult,
)

logger = logging.getLogger(__name__)


class ValidationRuleEngine:
    """
    Runs every active rule once over a submission's rows.

    Each rule is dispatched on its category to exactly one evaluator. Rules
    with a category the engine does not implement are skipped and reported as
    such in their execution stat.
    """

    def __init__(self, config: Optional[LiquidityConfig] = None,
                 max_workers: Optional[int] = None):
        """Initialize validator; ``max_workers`` > 1 evaluates rules on a thread pool."""
        self.config = config or LiquidityConfig()
        self.max_workers = max_workers
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def validate(self, rows: Iterable[Union[DataRow, Mapping[str, Any]]],
                 rules: Iterable[ValidationRule],
                 submission_id: str,
                 allowed_values: Optional[Mapping[str, Iterable[str]]] = None,
                 legal_entities: Optional[Iterable[str]] = None) -> ValidationRunResult:
        """Validate rows against the active rules."""

        rows = [row if isinstance(row, DataRow) else DataRow.from_raw(row) for row in rows]
        active_rules = [rule for rule in rules if rule.is_active]

        self.logger.info(
            f"Validating {len(rows)} rows against {len(active_rules)} active rules "
            f"for submission {submission_id}")

        context = ValidationContext(
            submission_id=submission_id,
            allowed_values={field: frozenset(values) for field, values in (allowed_values or {}).items()},
            legal_entities=frozenset(legal_entities or ()),
            config=self.config,
        )

        if self.max_workers and self.max_workers > 1 and len(active_rules) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(lambda rule: self._execute_rule(rule, rows, context), active_rules))
        else:
            outcomes = [self._execute_rule(rule, rows, context) for rule in active_rules]

        # Merge in rule order so the result does not depend on scheduling
        errors: List[ValidationError] = []
        rule_executions: List[RuleExecutionStat] = []
        registry_warnings: List[str] = []
        for rule_errors, stat, warnings in outcomes:
            errors.extend(rule_errors)
            rule_executions.append(stat)
            registry_warnings.extend(warnings)

        error_row_ids = {error.row_id for error in errors if error.row_id is not None}
        passed = not any(error.severity == Severity.ERROR for error in errors)

        self.logger.info(
            f"Validation complete: {len(errors)} findings on {len(error_row_ids)} rows, "
            f"{'PASSED' if passed else 'FAILED'}")

        return ValidationRunResult(
            submission_id=submission_id,
            total_rows=len(rows),
            valid_rows=len(rows) - len(error_row_ids),
            error_rows=len(error_row_ids),
            errors=errors,
            rule_executions=rule_executions,
            passed=passed,
            registry_warnings=registry_warnings,
        )

    def _execute_rule(self, rule: ValidationRule, rows: List[DataRow],
                      context: ValidationContext) -> Tuple[List[ValidationError], RuleExecutionStat, List[str]]:
        """Evaluate one rule and build its execution stat."""

        start = time.perf_counter()
        category = rule.rule_category

        if category is None:
            self.logger.warning(f"Skipping rule '{rule.name}': category '{rule.category}' not implemented")
            output = EvaluatorOutput([], [])
            notes = f"Skipped: rule category '{rule.category}' not implemented"
        else:
            self.logger.debug(f"Executing rule: {rule.name}")
            output = EVALUATORS[category](rule, rows, context)
            notes = (f"Found {len(output.errors)} validation errors" if output.errors
                     else "All rows passed")
            if output.warnings:
                notes = f"{notes}; " + "; ".join(output.warnings)

        elapsed_ms = (time.perf_counter() - start) * 1000
        error_count = len(output.errors)

        stat = RuleExecutionStat(
            rule_id=rule.id,
            rule_name=rule.name,
            category=rule.category,
            rows_checked=len(rows),
            rows_failed=error_count,
            rows_passed=len(rows) - error_count,
            distinct_rows_failed=len({error.row_id for error in output.errors if error.row_id is not None}),
            execution_time_ms=elapsed_ms,
            notes=notes,
        )
        return output.errors, stat, output.warnings

    @staticmethod
    def summarize(result: ValidationRunResult) -> Dict[str, Any]:
        """Summary of a run keyed like the submission status notes."""
        return {
            "submission_id": result.submission_id,
            "status": "validated" if result.passed else "validation_failed",
            "total_rows": result.total_rows,
            "valid_rows": result.valid_rows,
            "error_rows": result.error_rows,
            "errors": result.count_by_severity(Severity.ERROR),
            "warnings": result.count_by_severity(Severity.WARNING),
            "notes": (f"Validation complete: {result.valid_rows} valid rows, "
                      f"{result.error_rows} rows with errors, {len(result.errors)} total errors"),
        }
