"""Public structural validation API for Intake."""

from . import predicates
from .assertions import (
    AssertionFailure,
    assert_array_of,
    assert_defined,
    assert_has_key,
    assert_has_typed_key,
    assert_if,
    assert_non_empty_string,
    assert_number,
    assert_positive_number,
    assert_shape,
    assert_string,
)
from .predicates import Predicate
from .shapes import (
    ROOT_FIELD,
    FieldError,
    FieldRule,
    Invalid,
    Shape,
    Valid,
    ValidationResult,
)
from .unions import TaggedUnion

__all__ = [
    "AssertionFailure",
    "FieldError",
    "FieldRule",
    "Invalid",
    "Predicate",
    "ROOT_FIELD",
    "Shape",
    "TaggedUnion",
    "Valid",
    "ValidationResult",
    "assert_array_of",
    "assert_defined",
    "assert_has_key",
    "assert_has_typed_key",
    "assert_if",
    "assert_non_empty_string",
    "assert_number",
    "assert_positive_number",
    "assert_shape",
    "assert_string",
    "predicates",
]
