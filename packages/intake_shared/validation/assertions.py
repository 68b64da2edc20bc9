"""Fail-fast assertions for trust boundaries.

Assertions are for places where a failed check means a caller broke a
contract (for example, handing over data it claims is already validated).
They raise ``AssertionFailure`` instead of returning a result; the top-level
``result_boundary`` turns that into ``business``/``INTERNAL_ERROR``. Detailed
shape validation never uses them.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from .predicates import (
    Predicate,
    is_array,
    is_non_empty_string,
    is_number,
    is_positive_number,
    is_string,
)
from .shapes import Invalid, Shape
from .unions import TaggedUnion


T = TypeVar("T")


class AssertionFailure(Exception):
    """A trust-boundary check failed."""

    def __init__(self, field_name: str, received_value: Any, expected: str) -> None:
        super().__init__(f"Validation failed for field '{field_name}': expected {expected}")
        self.field_name = field_name
        self.received_value = received_value
        self.expected = expected


def assert_defined(value: T | None, field_name: str = "value") -> T:
    if value is None:
        raise AssertionFailure(field_name, value, "defined value")
    return value


def assert_string(value: object, field_name: str = "value") -> str:
    if not is_string(value):
        raise AssertionFailure(field_name, value, "string")
    return value


def assert_non_empty_string(value: object, field_name: str = "value") -> str:
    if not is_non_empty_string(value):
        raise AssertionFailure(field_name, value, "non-empty string")
    return value


def assert_number(value: object, field_name: str = "value") -> float | int:
    if not is_number(value):
        raise AssertionFailure(field_name, value, "number")
    return value  # type: ignore[return-value]


def assert_positive_number(value: object, field_name: str = "value") -> float | int:
    if not is_positive_number(value):
        raise AssertionFailure(field_name, value, "positive number")
    return value  # type: ignore[return-value]


def assert_array_of(
    value: object,
    element: Predicate,
    field_name: str = "value",
) -> list[Any] | tuple[Any, ...]:
    """Require an array and report the first failing element by index."""
    if not is_array(value):
        raise AssertionFailure(field_name, value, "array")
    for index, item in enumerate(value):
        if not element(item):
            raise AssertionFailure(f"{field_name}[{index}]", item, "valid array element")
    return value


def assert_has_key(value: object, key: str, field_name: str = "object") -> Mapping[str, Any]:
    if not isinstance(value, Mapping) or key not in value:
        raise AssertionFailure(field_name, value, f"object with property '{key}'")
    return value


def assert_has_typed_key(
    value: object,
    key: str,
    predicate: Predicate,
    field_name: str = "object",
) -> Mapping[str, Any]:
    """Require ``key`` in ``value`` and its value to satisfy ``predicate``."""
    record = assert_has_key(value, key, field_name)
    if not predicate(record[key]):
        raise AssertionFailure(f"{field_name}.{key}", record[key], "valid property value")
    return record


def assert_shape(
    value: object,
    shape: Shape | TaggedUnion,
    field_name: str = "value",
) -> Mapping[str, Any]:
    """Require ``value`` to satisfy ``shape``; the failing fields go in ``expected``."""
    outcome = shape.validate(value)
    if isinstance(outcome, Invalid):
        failing = ", ".join(error.field for error in outcome.errors)
        raise AssertionFailure(field_name, value, f"{shape.name} object (invalid: {failing})")
    return outcome.data


def assert_if(condition: bool, value: object, predicate: Predicate, message: str) -> None:
    """Apply ``predicate`` only when ``condition`` holds."""
    if condition and not predicate(value):
        raise AssertionFailure("value", value, message)
