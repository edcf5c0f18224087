from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable


class FilterValidationError(ValueError):
    """Raised when filter payload or values are invalid."""


class OperandType(str, Enum):
    STRING = "STRING"
    INTEGER = "INTEGER"
    DECIMAL = "DECIMAL"
    DATE = "DATE"
    TIME = "TIME"
    DATETIME = "DATETIME"
    BOOLEAN = "BOOLEAN"
    ENUM = "ENUM"


class OperatorType(str, Enum):
    CONTAIN = "CONTAIN"
    START_WITH = "START_WITH"
    END_WITH = "END_WITH"
    EQUAL = "EQUAL"
    GREATER_EQUAL = "GREATER_EQUAL"
    LESS_EQUAL = "LESS_EQUAL"
    BETWEEN = "BETWEEN"
    IN = "IN"


OPERATOR_LABELS: dict[OperatorType, str] = {
    OperatorType.CONTAIN: "Contains",
    OperatorType.START_WITH: "Starts with",
    OperatorType.END_WITH: "Ends with",
    OperatorType.EQUAL: "Equals",
    OperatorType.GREATER_EQUAL: "Greater than or equal",
    OperatorType.LESS_EQUAL: "Less than or equal",
    OperatorType.BETWEEN: "Between",
    OperatorType.IN: "Is one of",
}

_TEMPORAL_LABELS: dict[OperatorType, str] = {
    OperatorType.GREATER_EQUAL: "After",
    OperatorType.LESS_EQUAL: "Before",
}

_NUMERIC_OPERATORS = (
    OperatorType.EQUAL,
    OperatorType.GREATER_EQUAL,
    OperatorType.LESS_EQUAL,
    OperatorType.BETWEEN,
)

OPERATORS_BY_TYPE: dict[OperandType, tuple[OperatorType, ...]] = {
    OperandType.STRING: (OperatorType.CONTAIN, OperatorType.START_WITH, OperatorType.END_WITH),
    OperandType.INTEGER: _NUMERIC_OPERATORS,
    OperandType.DECIMAL: _NUMERIC_OPERATORS,
    OperandType.DATE: _NUMERIC_OPERATORS,
    OperandType.TIME: _NUMERIC_OPERATORS,
    OperandType.DATETIME: _NUMERIC_OPERATORS,
    OperandType.BOOLEAN: (OperatorType.EQUAL,),
    OperandType.ENUM: (OperatorType.EQUAL, OperatorType.IN),
}

TEMPORAL_TYPES = {OperandType.DATE, OperandType.TIME, OperandType.DATETIME}
NUMERIC_TYPES = {OperandType.INTEGER, OperandType.DECIMAL}

TRUE_TOKENS = {"true", "1", "yes", "on"}
FALSE_TOKENS = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str


@dataclass(frozen=True)
class FilterDefinition:
    """Declares one filterable field and the operand type of its values."""

    field: str
    label: str
    operand_type: OperandType = OperandType.STRING
    options: tuple[FilterOption, ...] = ()

    def __post_init__(self) -> None:
        if self.operand_type is OperandType.ENUM and not self.options:
            raise ValueError(f"ENUM filter '{self.field}' needs an option list")
        if self.operand_type is not OperandType.ENUM and self.options:
            raise ValueError(f"Only ENUM filters take options: {self.field}")

    @property
    def operators(self) -> tuple[OperatorType, ...]:
        return OPERATORS_BY_TYPE[self.operand_type]

    def operator_label(self, operator: OperatorType) -> str:
        if self.operand_type is OperandType.BOOLEAN and operator is OperatorType.EQUAL:
            return "Is"
        if self.operand_type is OperandType.ENUM and operator is OperatorType.EQUAL:
            return "Is"
        if self.operand_type in TEMPORAL_TYPES and operator in _TEMPORAL_LABELS:
            return _TEMPORAL_LABELS[operator]
        return OPERATOR_LABELS[operator]


# Filter values are a tagged variant; the operator decides which one applies.


@dataclass(frozen=True)
class ScalarValue:
    value: Any


@dataclass(frozen=True)
class RangeValue:
    low: Any
    high: Any


@dataclass(frozen=True)
class SetValue:
    values: tuple[Any, ...]


FilterValue = ScalarValue | RangeValue | SetValue


@dataclass(frozen=True)
class FilterCondition:
    field: str
    operand_type: OperandType
    operator: OperatorType
    value: FilterValue
    label: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """Render the condition as one ``searchCondition`` entry."""
        payload: dict[str, Any] = {
            "fieldName": self.field,
            "operandType": self.operand_type.value,
            "operatorType": self.operator.value,
        }
        if self.label:
            payload["label"] = self.label
        if isinstance(self.value, RangeValue):
            low = _wire_scalar(self.value.low)
            high = _wire_scalar(self.value.high)
            payload["datas"] = [low, high]
            if self.operand_type in TEMPORAL_TYPES:
                payload["minDate"] = low
                payload["maxDate"] = high
            elif self.operand_type in NUMERIC_TYPES:
                payload["min"] = low
                payload["max"] = high
        elif isinstance(self.value, SetValue):
            payload["datas"] = [_wire_scalar(item) for item in self.value.values]
        else:
            payload["data"] = _wire_scalar(self.value.value)
        return payload


def _wire_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (date, datetime, time)):
        return value.isoformat()
    return str(value)


def _coerce_scalar(definition: FilterDefinition, value: Any) -> Any:
    operand_type = definition.operand_type
    if value is None or (isinstance(value, str) and not value.strip()):
        raise FilterValidationError(f"A value is required for '{definition.field}'")

    if operand_type is OperandType.STRING:
        return str(value).strip()

    if operand_type is OperandType.INTEGER:
        if isinstance(value, bool):
            raise FilterValidationError("Expected an integer value")
        if isinstance(value, int):
            return value
        try:
            return int(str(value).strip())
        except ValueError as exc:
            raise FilterValidationError("Expected an integer value") from exc

    if operand_type is OperandType.DECIMAL:
        if isinstance(value, bool):
            raise FilterValidationError("Expected a numeric value")
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise FilterValidationError("Expected a numeric value") from exc

    if operand_type is OperandType.BOOLEAN:
        if isinstance(value, bool):
            return value
        token = str(value).strip().lower()
        if token in TRUE_TOKENS:
            return True
        if token in FALSE_TOKENS:
            return False
        raise FilterValidationError("Expected a boolean value")

    if operand_type is OperandType.DATE:
        if isinstance(value, date) and not isinstance(value, datetime):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise FilterValidationError("Expected an ISO date value (YYYY-MM-DD)") from exc

    if operand_type is OperandType.TIME:
        if isinstance(value, time):
            return value
        try:
            return time.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise FilterValidationError("Expected an ISO time value (HH:MM[:SS])") from exc

    if operand_type is OperandType.DATETIME:
        if isinstance(value, datetime):
            return value
        try:
            return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise FilterValidationError("Expected an ISO datetime value") from exc

    # ENUM
    allowed = {option.value for option in definition.options}
    text = str(value).strip()
    if text not in allowed:
        raise FilterValidationError(f"Invalid option for '{definition.field}': {value}")
    return text


def _as_items(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    raise FilterValidationError("Expected an array value")


@dataclass
class FilterRegistry:
    """Per-table whitelist of filterable fields."""

    definitions: tuple[FilterDefinition, ...] = ()
    _by_field: dict[str, FilterDefinition] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.definitions = tuple(self.definitions)
        self._by_field = {}
        for definition in self.definitions:
            if definition.field in self._by_field:
                raise ValueError(f"Duplicate filter field: {definition.field}")
            self._by_field[definition.field] = definition

    def __iter__(self):
        return iter(self.definitions)

    def __len__(self) -> int:
        return len(self.definitions)

    def get(self, field_name: str) -> FilterDefinition:
        definition = self._by_field.get(field_name)
        if definition is None:
            raise FilterValidationError(f"Field '{field_name}' is not filterable")
        return definition

    def build(self, field_name: str, operator: OperatorType | str, value: Any) -> FilterCondition:
        """Validate raw filter-panel input and return a typed condition."""
        definition = self.get(field_name)
        try:
            op = OperatorType(str(operator.value if isinstance(operator, Enum) else operator).upper())
        except ValueError as exc:
            raise FilterValidationError(f"Unsupported operator: {operator}") from exc
        if op not in definition.operators:
            raise FilterValidationError(
                f"Operator '{op.value}' is not allowed for field '{field_name}'"
            )

        typed: FilterValue
        if op is OperatorType.BETWEEN:
            items = _as_items(value)
            if len(items) != 2:
                raise FilterValidationError("Between expects [from, to]")
            low = _coerce_scalar(definition, items[0])
            high = _coerce_scalar(definition, items[1])
            try:
                inverted = low > high
            except TypeError as exc:
                raise FilterValidationError("Between bounds are not comparable") from exc
            if inverted:
                raise FilterValidationError("Between range start must not exceed its end")
            typed = RangeValue(low, high)
        elif op is OperatorType.IN:
            items = _as_items(value)
            if not items:
                raise FilterValidationError("Array filter value cannot be empty")
            typed = SetValue(tuple(_coerce_scalar(definition, item) for item in items))
        else:
            typed = ScalarValue(_coerce_scalar(definition, value))

        return FilterCondition(
            field=definition.field,
            operand_type=definition.operand_type,
            operator=op,
            value=typed,
            label=definition.label,
        )

    def validate(self, condition: FilterCondition) -> FilterCondition:
        """Re-check an already typed condition against this registry."""
        definition = self.get(condition.field)
        if condition.operand_type is not definition.operand_type:
            raise FilterValidationError(
                f"Field '{condition.field}' expects operand type {definition.operand_type.value}"
            )
        if isinstance(condition.value, RangeValue):
            raw: Any = [condition.value.low, condition.value.high]
        elif isinstance(condition.value, SetValue):
            raw = list(condition.value.values)
        else:
            raw = condition.value.value
        return self.build(condition.field, condition.operator, raw)

    def validate_all(self, conditions: Iterable[FilterCondition]) -> tuple[FilterCondition, ...]:
        return tuple(self.validate(condition) for condition in conditions)

    def parse_wire(self, payload: str | list | None) -> tuple[FilterCondition, ...]:
        """Parse a ``searchCondition`` JSON array back into typed conditions."""
        if payload is None or payload == "":
            return ()
        if isinstance(payload, str):
            try:
                parsed = json.loads(payload)
            except json.JSONDecodeError as exc:
                raise FilterValidationError("Invalid JSON in searchCondition") from exc
        else:
            parsed = payload
        if not isinstance(parsed, list):
            raise FilterValidationError("searchCondition must be a JSON array")

        conditions: list[FilterCondition] = []
        for row in parsed:
            if not isinstance(row, dict):
                raise FilterValidationError("Each search condition must be an object")
            field_name = str(row.get("fieldName") or "").strip()
            if not field_name:
                raise FilterValidationError("Filter field is required")
            operator = row.get("operatorType")
            if operator is None:
                raise FilterValidationError("Filter operator is required")
            definition = self.get(field_name)
            declared = row.get("operandType")
            if declared is not None and str(declared).upper() != definition.operand_type.value:
                raise FilterValidationError(
                    f"Field '{field_name}' expects operand type {definition.operand_type.value}"
                )
            value = row.get("datas") if str(operator).upper() in {"BETWEEN", "IN"} else row.get("data")
            conditions.append(self.build(field_name, operator, value))
        return tuple(conditions)


def serialize_conditions(conditions: Iterable[FilterCondition]) -> str | None:
    """Encode the filter set as the opaque ``searchCondition`` parameter.

    An empty set is sent as no parameter at all.
    """
    rows = [condition.to_wire() for condition in conditions]
    if not rows:
        return None
    return json.dumps(rows, separators=(",", ":"))
