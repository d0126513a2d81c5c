"""Data models for FR 2052a rule-based data validation."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class RuleCategory(str, Enum):
    """Rule categories the engine knows how to evaluate."""

    ENUMERATION = "enumeration"
    DATA_TYPE = "data_type"
    CROSS_FIELD = "cross_field"
    FIELD_DEPENDENCY = "field_dependency"
    DUPLICATE = "duplicate"
    LEGAL_ENTITY = "legal_entity"


class Severity(str, Enum):
    """Severity of a validation finding."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationRule(BaseModel):
    """Entry of the validation rule registry."""

    model_config = ConfigDict(frozen=True)

    id: str
    category: str
    name: str
    target_field: Optional[str] = None
    is_active: bool = True
    description: Optional[str] = None

    @property
    def rule_category(self) -> Optional[RuleCategory]:
        """Resolved category, or None when the registry holds a category the engine does not implement."""
        try:
            return RuleCategory(self.category)
        except ValueError:
            return None


_DATE_ADAPTER = TypeAdapter(date)


def _parse_number(value) -> float:
    if isinstance(value, bool):
        raise TypeError("boolean is not a number")
    return float(value)


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return _DATE_ADAPTER.validate_python(value)


TEXT_FIELDS = (
    "id", "reporting_entity", "legal_entity_id", "product", "sub_product",
    "counterparty", "maturity_bucket", "currency", "internal_counterparty",
)

RAW_PARSERS = {
    "lendable_value": _parse_number,
    "market_value": _parse_number,
    "maturity_date": _parse_date,
}


class DataRow(BaseModel):
    """Raw FR 2052a submission row as stored before calculation."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    reporting_entity: Optional[str] = None
    legal_entity_id: Optional[str] = None
    product: Optional[str] = None
    sub_product: Optional[str] = None
    counterparty: Optional[str] = None
    maturity_bucket: Optional[str] = None
    currency: Optional[str] = None
    internal_flag: Optional[Union[bool, str]] = None
    internal_counterparty: Optional[str] = None
    lendable_value: Optional[float] = None
    market_value: Optional[float] = None
    maturity_date: Optional[date] = None
    # Raw values that could not be parsed into their typed field
    unparsed_values: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_raw(cls, record: Mapping[str, Any]) -> "DataRow":
        """Build a row from an untyped mapping without rejecting off-type values.

        Text fields are stringified. Numbers and dates that do not parse are
        left unset and kept in ``unparsed_values`` so rules can report them.
        """
        values = dict(record)
        unparsed = {}

        for name in TEXT_FIELDS:
            value = values.get(name)
            if value is not None and not isinstance(value, str):
                values[name] = str(value)

        flag = values.get("internal_flag")
        if flag is not None and not isinstance(flag, (bool, str)):
            values["internal_flag"] = str(flag)

        for name, parse in RAW_PARSERS.items():
            value = values.get(name)
            if value is None:
                continue
            if isinstance(value, str) and value.strip() == "":
                values[name] = None
                continue
            try:
                values[name] = parse(value)
            except (TypeError, ValueError):
                unparsed[name] = str(value)
                values[name] = None

        values["unparsed_values"] = unparsed
        return cls(**values)

    def value_of(self, field_name: str):
        """Attribute lookup that also covers extra columns."""
        if field_name in type(self).model_fields:
            return getattr(self, field_name)
        return (self.model_extra or {}).get(field_name)


class NaturalKey(NamedTuple):
    """Field tuple that should identify a reporting row uniquely."""

    reporting_entity: Optional[str]
    product: Optional[str]
    sub_product: Optional[str]
    counterparty: Optional[str]
    maturity_bucket: Optional[str]
    currency: Optional[str]

    @classmethod
    def of(cls, row: DataRow) -> "NaturalKey":
        return cls(row.reporting_entity, row.product, row.sub_product,
                   row.counterparty, row.maturity_bucket, row.currency)

    def __str__(self) -> str:
        return "|".join("" if part is None else str(part) for part in self)


class ValidationError(BaseModel):
    """Single validation finding against a submission."""

    model_config = ConfigDict(frozen=True)

    submission_id: str
    row_id: Optional[str] = None
    error_type: str
    message: str
    field_name: Optional[str] = None
    expected_value: Optional[str] = None
    actual_value: Optional[str] = None
    severity: Severity = Severity.ERROR


class RuleExecutionStat(BaseModel):
    """Execution statistics of one rule within a run."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    category: str
    rows_checked: int
    # Counts findings, not distinct rows; see distinct_rows_failed
    rows_failed: int
    rows_passed: int
    distinct_rows_failed: int = 0
    execution_time_ms: float = 0.0
    notes: Optional[str] = None


class ValidationRunResult(BaseModel):
    """Outcome of validating one submission's rows against the active rules."""

    model_config = ConfigDict(frozen=True)

    submission_id: str
    total_rows: int
    valid_rows: int
    error_rows: int
    errors: List[ValidationError] = Field(default_factory=list)
    rule_executions: List[RuleExecutionStat] = Field(default_factory=list)
    passed: bool
    registry_warnings: List[str] = Field(default_factory=list)

    def errors_for_rule_type(self, error_type: str) -> List[ValidationError]:
        return [error for error in self.errors if error.error_type == error_type]

    def count_by_severity(self, severity: Severity) -> int:
        return sum(1 for error in self.errors if error.severity == severity)
