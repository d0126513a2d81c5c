"""Rule evaluators, one per rule category.

Each evaluator scans the full row set once and returns its own findings; the
engine merges them in rule order. Evaluators never raise on odd data and never
mutate their inputs.
"""

from typing import Callable, Dict, FrozenSet, List, NamedTuple, Sequence
from pydantic import BaseModel, ConfigDict, Field
import logging

from ..core.config import LiquidityConfig
from .models import (
    DataRow, NaturalKey, RuleCategory, Severity, ValidationError, ValidationRule,
)

logger = logging.getLogger(__name__)


class ValidationContext(BaseModel):
    """Materialized registries and parameters for one validation run."""

    model_config = ConfigDict(frozen=True)

    submission_id: str
    allowed_values: Dict[str, FrozenSet[str]] = Field(default_factory=dict)
    legal_entities: FrozenSet[str] = frozenset()
    config: LiquidityConfig = Field(default_factory=LiquidityConfig)


class EvaluatorOutput(NamedTuple):
    errors: List[ValidationError]
    warnings: List[str]


Evaluator = Callable[[ValidationRule, Sequence[DataRow], ValidationContext], EvaluatorOutput]


def _finding(context: ValidationContext, row: DataRow, **fields) -> ValidationError:
    return ValidationError(submission_id=context.submission_id, row_id=row.id, **fields)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def evaluate_enumeration(rule: ValidationRule, rows: Sequence[DataRow],
                         context: ValidationContext) -> EvaluatorOutput:
    """Field value must belong to the registry's allowed values for the rule's field."""

    allowed = context.allowed_values.get(rule.target_field or "")
    if not allowed:
        warning = (f"Rule '{rule.name}': no allowed values registered for field "
                   f"'{rule.target_field}', enumeration check not applied")
        logger.warning(warning)
        return EvaluatorOutput([], [warning])

    attribute = context.config.field_for(rule.target_field)
    expected = ", ".join(sorted(allowed))
    errors = []

    for row in rows:
        value = row.value_of(attribute)
        if _is_blank(value) or str(value) in allowed:
            continue
        errors.append(_finding(
            context, row,
            error_type="enumeration_violation",
            message=f"Invalid {rule.target_field}: '{value}' is not in allowed values",
            field_name=rule.target_field,
            expected_value=expected,
            actual_value=str(value),
            severity=Severity.ERROR,
        ))

    return EvaluatorOutput(errors, [])


def evaluate_data_type(rule: ValidationRule, rows: Sequence[DataRow],
                       context: ValidationContext) -> EvaluatorOutput:
    """Currency codes must be on the ISO 4217 whitelist."""

    if rule.target_field not in (None, "Currency"):
        logger.info(f"Rule '{rule.name}': no data type check for field '{rule.target_field}'")
        return EvaluatorOutput([], [])

    currencies = context.config.validation.iso_currencies
    valid = set(currencies)
    errors = []

    for row in rows:
        if _is_blank(row.currency) or row.currency in valid:
            continue
        errors.append(_finding(
            context, row,
            error_type="invalid_currency",
            message=f"Invalid ISO 4217 currency code: '{row.currency}'",
            field_name="Currency",
            expected_value=", ".join(currencies),
            actual_value=row.currency,
            severity=Severity.ERROR,
        ))

    return EvaluatorOutput(errors, [])


def _unparsed_finding(context: ValidationContext, row: DataRow, attribute: str, field_name: str,
                      error_type: str, expected: str) -> ValidationError:
    raw = row.unparsed_values[attribute]
    return _finding(
        context, row,
        error_type=error_type,
        message=f"Invalid {field_name}: '{raw}' could not be parsed",
        field_name=field_name,
        expected_value=expected,
        actual_value=raw,
        severity=Severity.ERROR,
    )


def _check_lendable_value(rule: ValidationRule, rows: Sequence[DataRow],
                          context: ValidationContext) -> List[ValidationError]:
    errors = []
    for row in rows:
        unparsed = [(attribute, field_name) for attribute, field_name in
                    (("lendable_value", "LendableValue"), ("market_value", "MarketValue"))
                    if attribute in row.unparsed_values]
        if unparsed:
            errors.extend(_unparsed_finding(context, row, attribute, field_name,
                                            "invalid_numeric_value", "numeric value")
                          for attribute, field_name in unparsed)
            continue

        lendable = row.lendable_value or 0.0
        market = row.market_value or 0.0
        if lendable > market:
            errors.append(_finding(
                context, row,
                error_type="cross_field_violation",
                message=f"Lendable value ({lendable}) exceeds market value ({market})",
                field_name="LendableValue",
                expected_value=f"<= {market}",
                actual_value=str(lendable),
                severity=Severity.ERROR,
            ))
    return errors


def _check_weekend_maturity(rule: ValidationRule, rows: Sequence[DataRow],
                            context: ValidationContext) -> List[ValidationError]:
    errors = []
    for row in rows:
        if "maturity_date" in row.unparsed_values:
            errors.append(_unparsed_finding(context, row, "maturity_date", "MaturityDate",
                                            "invalid_date", "ISO date"))
            continue
        if row.maturity_date is None or row.maturity_date.weekday() < 5:
            continue
        errors.append(_finding(
            context, row,
            error_type="cross_field_violation",
            message=f"Maturity date {row.maturity_date.isoformat()} falls on a weekend",
            field_name="MaturityDate",
            expected_value="business day",
            actual_value=row.maturity_date.strftime("%A"),
            severity=Severity.ERROR,
        ))
    return errors


CROSS_FIELD_CHECKS = {
    "LendableValue": _check_lendable_value,
    "MaturityDate": _check_weekend_maturity,
}


def evaluate_cross_field(rule: ValidationRule, rows: Sequence[DataRow],
                         context: ValidationContext) -> EvaluatorOutput:
    """Consistency between two fields of the same row, selected by the rule's target field."""

    check = CROSS_FIELD_CHECKS.get(rule.target_field or "LendableValue")
    if check is None:
        logger.info(f"Rule '{rule.name}': no cross-field check for field '{rule.target_field}'")
        return EvaluatorOutput([], [])
    return EvaluatorOutput(check(rule, rows, context), [])


def evaluate_field_dependency(rule: ValidationRule, rows: Sequence[DataRow],
                              context: ValidationContext) -> EvaluatorOutput:
    """Internal transactions must name their internal counterparty."""

    truthy = {flag.lower() for flag in context.config.validation.truthy_flags}
    errors = []

    for row in rows:
        flag = row.internal_flag
        is_internal = flag is True or (isinstance(flag, str) and flag.strip().lower() in truthy)
        if not is_internal or not _is_blank(row.internal_counterparty):
            continue
        errors.append(_finding(
            context, row,
            error_type="field_dependency_violation",
            message="Internal counterparty must be specified when Internal=Yes",
            field_name="InternalCounterparty",
            expected_value="non-empty value",
            actual_value=row.internal_counterparty or "null",
            severity=Severity.ERROR,
        ))

    return EvaluatorOutput(errors, [])


def evaluate_duplicates(rule: ValidationRule, rows: Sequence[DataRow],
                        context: ValidationContext) -> EvaluatorOutput:
    """Rows sharing a natural key are flagged, first occurrence included.

    Must run sequentially: the first-seen map depends on row order.
    """

    seen: Dict[NaturalKey, DataRow] = {}
    first_flagged = set()
    errors = []

    for row in rows:
        key = NaturalKey.of(row)
        first = seen.get(key)
        if first is None:
            seen[key] = row
            continue

        if key not in first_flagged:
            first_flagged.add(key)
            errors.append(_finding(
                context, first,
                error_type="duplicate_row",
                message="Row shares its key fields with a later row",
                expected_value="unique combination",
                actual_value=str(key),
                severity=Severity.WARNING,
            ))
        errors.append(_finding(
            context, row,
            error_type="duplicate_row",
            message=f"Duplicate row detected with identical key fields (first seen in row {first.id})",
            expected_value="unique combination",
            actual_value=str(key),
            severity=Severity.WARNING,
        ))

    return EvaluatorOutput(errors, [])


def evaluate_legal_entity(rule: ValidationRule, rows: Sequence[DataRow],
                          context: ValidationContext) -> EvaluatorOutput:
    """Referenced legal entity must exist in the entity registry."""

    if not context.legal_entities:
        warning = f"Rule '{rule.name}': legal entity registry is empty, entity check not applied"
        logger.warning(warning)
        return EvaluatorOutput([], [warning])

    errors = []
    for row in rows:
        if _is_blank(row.legal_entity_id) or row.legal_entity_id in context.legal_entities:
            continue
        errors.append(_finding(
            context, row,
            error_type="invalid_legal_entity",
            message=f"Legal entity ID '{row.legal_entity_id}' not found in entity registry",
            field_name="ReportingEntity",
            expected_value="valid legal entity ID",
            actual_value=row.legal_entity_id,
            severity=Severity.ERROR,
        ))

    return EvaluatorOutput(errors, [])


EVALUATORS: Dict[RuleCategory, Evaluator] = {
    RuleCategory.ENUMERATION: evaluate_enumeration,
    RuleCategory.DATA_TYPE: evaluate_data_type,
    RuleCategory.CROSS_FIELD: evaluate_cross_field,
    RuleCategory.FIELD_DEPENDENCY: evaluate_field_dependency,
    RuleCategory.DUPLICATE: evaluate_duplicates,
    RuleCategory.LEGAL_ENTITY: evaluate_legal_entity,
}


def _assert_exhaustive() -> None:
    missing = set(RuleCategory) - set(EVALUATORS)
    if missing:
        raise RuntimeError(f"No evaluator registered for rule categories: {sorted(c.value for c in missing)}")


_assert_exhaustive()
