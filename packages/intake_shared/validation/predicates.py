"""Pure structural predicates over untyped values.

Every predicate takes any value and returns a boolean narrowing decision.
Predicates never raise and never mutate their input. Numeric predicates
reject ``bool`` (a Python ``int`` subclass), NaN and infinities.
"""

from __future__ import annotations

import inspect
import math
import re
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Callable, TypeAlias, TypeGuard

Predicate: TypeAlias = Callable[[Any], bool]

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
_MIN_PHONE_DIGITS = 10


def is_string(value: object) -> TypeGuard[str]:
    return isinstance(value, str)


def is_non_empty_string(value: object) -> TypeGuard[str]:
    """Strings with at least one non-whitespace character."""
    return isinstance(value, str) and value.strip() != ""


def is_numeric_string(value: object) -> TypeGuard[str]:
    """Strings that parse as a finite number."""
    if not is_non_empty_string(value):
        return False
    try:
        parsed = float(value)
    except ValueError:
        return False
    return math.isfinite(parsed)


def is_number(value: object) -> bool:
    """Finite ``int`` or ``float`` values, excluding ``bool``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, int):
        # Arbitrary-precision ints are always finite and may not fit a float.
        return True
    return math.isfinite(value)


def is_positive_number(value: object) -> bool:
    return is_number(value) and value > 0  # type: ignore[operator]


def is_integer(value: object) -> TypeGuard[int]:
    """``int`` values, excluding ``bool``. Integral floats are not integers."""
    return isinstance(value, int) and not isinstance(value, bool)


def is_positive_integer(value: object) -> TypeGuard[int]:
    return is_integer(value) and value > 0


def is_boolean(value: object) -> TypeGuard[bool]:
    return isinstance(value, bool)


def is_none(value: object) -> TypeGuard[None]:
    return value is None


def is_array(value: object) -> TypeGuard[list[Any] | tuple[Any, ...]]:
    """Lists and tuples. Strings and other iterables are not arrays."""
    return isinstance(value, (list, tuple))


def is_non_empty_array(value: object) -> bool:
    return is_array(value) and len(value) > 0


def is_array_of_length(value: object, length: int) -> bool:
    return is_array(value) and len(value) == length


def is_array_of(value: object, element: Predicate) -> bool:
    """Arrays whose every element satisfies ``element``.

    Every element is checked; callers that need the failing index should use
    detailed shape validation instead.
    """
    if not is_array(value):
        return False
    outcomes = [bool(element(item)) for item in value]
    return all(outcomes)


def is_record(value: object) -> TypeGuard[Mapping[str, Any]]:
    """Any mapping, including mapping subclasses."""
    return isinstance(value, Mapping)


def is_plain_object(value: object) -> TypeGuard[dict[str, Any]]:
    """Exactly ``dict``; subclasses and other mappings are rejected."""
    return type(value) is dict


def is_empty_object(value: object) -> bool:
    return is_record(value) and len(value) == 0


def has_string_key(value: object, key: str) -> bool:
    """Mappings holding a string under ``key``."""
    return is_record(value) and key in value and isinstance(value[key], str)


def is_date(value: object) -> TypeGuard[datetime]:
    """Timezone-aware ``datetime`` instances.

    Naive datetimes do not name an instant, so they are not dates here.
    """
    return isinstance(value, datetime) and value.utcoffset() is not None


def is_valid_date_string(value: object) -> TypeGuard[str]:
    """ISO-8601 strings parseable by ``datetime.fromisoformat``."""
    if not is_non_empty_string(value):
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_callable(value: object) -> bool:
    return callable(value)


def is_coroutine_function(value: object) -> bool:
    return inspect.iscoroutinefunction(value)


def is_valid_email(value: object) -> TypeGuard[str]:
    return isinstance(value, str) and _EMAIL_PATTERN.match(value) is not None


def is_valid_phone_number(value: object) -> TypeGuard[str]:
    """Phone strings of digits/spaces/dashes/parens with at least 10 digits."""
    if not isinstance(value, str) or _PHONE_PATTERN.match(value) is None:
        return False
    return sum(char.isdigit() for char in value) >= _MIN_PHONE_DIGITS


def one_of(*choices: object) -> Predicate:
    """Build a predicate accepting only the given literal values."""
    allowed = tuple(choices)

    def check(value: object) -> bool:
        return any(type(value) is type(choice) and value == choice for choice in allowed)

    return check


def all_of(*predicates: Predicate) -> Predicate:
    """Build the intersection of ``predicates``."""

    def check(value: object) -> bool:
        return all(predicate(value) for predicate in predicates)

    return check


def any_of(*predicates: Predicate) -> Predicate:
    """Build the union of ``predicates``."""

    def check(value: object) -> bool:
        return any(predicate(value) for predicate in predicates)

    return check


def optional(predicate: Predicate) -> Predicate:
    """Accept ``None`` in addition to values matching ``predicate``."""
    return any_of(is_none, predicate)


def array_of(element: Predicate) -> Predicate:
    """Bind ``element`` into a one-argument array predicate."""

    def check(value: object) -> bool:
        return is_array_of(value, element)

    return check
