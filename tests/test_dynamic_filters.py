from __future__ import annotations

import json
from datetime import date
from decimal import Decimal

import pytest

from resto_admin.services.dynamic_filters import (
    FilterDefinition,
    FilterOption,
    FilterRegistry,
    FilterValidationError,
    OperandType,
    OperatorType,
    RangeValue,
    ScalarValue,
    SetValue,
    serialize_conditions,
)

STATUS = (FilterOption("ACTIVE", "Active"), FilterOption("INACTIVE", "Inactive"))


@pytest.fixture()
def registry():
    return FilterRegistry(
        (
            FilterDefinition("name", "Name", OperandType.STRING),
            FilterDefinition("guestCount", "Guests", OperandType.INTEGER),
            FilterDefinition("price", "Price", OperandType.DECIMAL),
            FilterDefinition("birthdate", "Birthdate", OperandType.DATE),
            FilterDefinition("canBeSold", "Can Be Sold", OperandType.BOOLEAN),
            FilterDefinition("status", "Status", OperandType.ENUM, STATUS),
        )
    )


def test_enum_definition_requires_options():
    with pytest.raises(ValueError):
        FilterDefinition("status", "Status", OperandType.ENUM)


def test_options_only_allowed_for_enum():
    with pytest.raises(ValueError):
        FilterDefinition("name", "Name", OperandType.STRING, STATUS)


def test_duplicate_fields_are_rejected():
    with pytest.raises(ValueError):
        FilterRegistry(
            (
                FilterDefinition("name", "Name"),
                FilterDefinition("name", "Other name"),
            )
        )


def test_operators_follow_operand_type(registry):
    assert registry.get("name").operators == (
        OperatorType.CONTAIN,
        OperatorType.START_WITH,
        OperatorType.END_WITH,
    )
    assert registry.get("canBeSold").operators == (OperatorType.EQUAL,)
    assert OperatorType.IN in registry.get("status").operators
    assert registry.get("birthdate").operator_label(OperatorType.GREATER_EQUAL) == "After"


def test_build_coerces_scalar_values(registry):
    assert registry.build("guestCount", "equal", "4").value == ScalarValue(4)
    assert registry.build("price", OperatorType.LESS_EQUAL, "9.50").value == ScalarValue(
        Decimal("9.50")
    )
    assert registry.build("canBeSold", "EQUAL", "yes").value == ScalarValue(True)
    assert registry.build("name", "CONTAIN", "  pho ").value == ScalarValue("pho")


def test_build_rejects_unknown_field_and_operator(registry):
    with pytest.raises(FilterValidationError):
        registry.build("missing", "EQUAL", "x")
    with pytest.raises(FilterValidationError):
        registry.build("name", "EQUAL", "x")
    with pytest.raises(FilterValidationError):
        registry.build("name", "LIKE", "x")


def test_build_rejects_bad_values(registry):
    with pytest.raises(FilterValidationError):
        registry.build("guestCount", "EQUAL", "four")
    with pytest.raises(FilterValidationError):
        registry.build("canBeSold", "EQUAL", "maybe")
    with pytest.raises(FilterValidationError):
        registry.build("status", "EQUAL", "ARCHIVED")
    with pytest.raises(FilterValidationError):
        registry.build("name", "CONTAIN", "   ")


def test_between_builds_range_and_checks_bounds(registry):
    condition = registry.build("birthdate", "BETWEEN", ["1990-01-01", "2000-12-31"])

    assert condition.value == RangeValue(date(1990, 1, 1), date(2000, 12, 31))

    with pytest.raises(FilterValidationError):
        registry.build("birthdate", "BETWEEN", ["2000-12-31", "1990-01-01"])
    with pytest.raises(FilterValidationError):
        registry.build("guestCount", "BETWEEN", ["1"])


def test_in_builds_set_and_rejects_empty(registry):
    condition = registry.build("status", "IN", "ACTIVE,INACTIVE")

    assert condition.value == SetValue(("ACTIVE", "INACTIVE"))

    with pytest.raises(FilterValidationError):
        registry.build("status", "IN", [])


def test_wire_format_for_each_value_shape(registry):
    scalar = registry.build("name", "START_WITH", "Bun")
    numeric_range = registry.build("price", "BETWEEN", ["1", "5"])
    date_range = registry.build("birthdate", "BETWEEN", ["1990-01-01", "2000-12-31"])
    choice = registry.build("status", "IN", ["ACTIVE"])

    assert scalar.to_wire() == {
        "fieldName": "name",
        "operandType": "STRING",
        "operatorType": "START_WITH",
        "label": "Name",
        "data": "Bun",
    }
    assert numeric_range.to_wire()["min"] == "1"
    assert numeric_range.to_wire()["max"] == "5"
    assert date_range.to_wire()["minDate"] == "1990-01-01"
    assert date_range.to_wire()["datas"] == ["1990-01-01", "2000-12-31"]
    assert choice.to_wire()["datas"] == ["ACTIVE"]


def test_serialize_conditions_omits_empty_set(registry):
    assert serialize_conditions([]) is None

    encoded = serialize_conditions([registry.build("canBeSold", "EQUAL", True)])

    assert json.loads(encoded) == [
        {
            "fieldName": "canBeSold",
            "operandType": "BOOLEAN",
            "operatorType": "EQUAL",
            "label": "Can Be Sold",
            "data": "true",
        }
    ]


def test_parse_wire_reads_serialized_conditions(registry):
    original = (
        registry.build("guestCount", "GREATER_EQUAL", 2),
        registry.build("status", "IN", ["ACTIVE", "INACTIVE"]),
        registry.build("price", "BETWEEN", ["1.5", "3"]),
    )

    parsed = registry.parse_wire(serialize_conditions(original))

    assert parsed == original


def test_parse_wire_rejects_mismatched_operand_type(registry):
    payload = json.dumps(
        [{"fieldName": "guestCount", "operandType": "STRING", "operatorType": "EQUAL", "data": "2"}]
    )

    with pytest.raises(FilterValidationError):
        registry.parse_wire(payload)


@pytest.mark.parametrize("payload", ["{not json", '{"fieldName": "name"}', "[1]"])
def test_parse_wire_rejects_malformed_payload(registry, payload):
    with pytest.raises(FilterValidationError):
        registry.parse_wire(payload)
