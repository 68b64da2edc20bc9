"""Declared record shapes with fast and detailed validation modes.

A ``Shape`` is a named list of ``FieldRule`` entries over a mapping. The same
declaration answers two questions:

- ``is_valid(value)``: a yes/no gate that stops at the first failing field.
- ``validate(value)``: a ``ValidationResult`` listing every failing field.

Field presence is checked before field type, so an absent key always reports
``Missing or invalid <field> field`` and never a type-mismatch message.
Nested shapes are validated recursively. The parent reports its own field
with the received value attached and the nested field errors under
``nested``; nested errors are never flattened into the parent list.

Validation does not coerce. ``Valid.data`` is the exact mapping that was
checked, so re-validating it always succeeds with identical values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal, TypeAlias

from .predicates import Predicate, is_array, is_record

ROOT_FIELD = "root"


@dataclass(frozen=True)
class FieldError:
    """One independently failing field."""

    field: str
    message: str
    value: Any = None
    nested: tuple["FieldError", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "field": self.field,
            "message": self.message,
            "value": self.value,
        }
        if self.nested:
            payload["nested"] = [item.to_dict() for item in self.nested]
        return payload


@dataclass(frozen=True)
class Valid:
    data: Mapping[str, Any]

    @property
    def valid(self) -> Literal[True]:
        return True


@dataclass(frozen=True)
class Invalid:
    errors: tuple[FieldError, ...]

    @property
    def valid(self) -> Literal[False]:
        return False

    def fields(self) -> list[str]:
        """Return failing field names in declaration order."""
        return [error.field for error in self.errors]


ValidationResult: TypeAlias = Valid | Invalid


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one key of a record shape.

    Exactly one of ``check`` or ``shape`` drives the decision. ``each`` adds
    per-element reporting for array fields in detailed mode.
    """

    name: str
    message: str
    check: Predicate | None = None
    shape: "Shape | None" = None
    required: bool = True
    each: Predicate | None = None
    each_message: str = "invalid element"

    def __post_init__(self) -> None:
        if (self.check is None) == (self.shape is None):
            raise ValueError(
                f"field rule {self.name!r} needs exactly one of check or shape"
            )

    def accepts(self, value: object) -> bool:
        if self.shape is not None:
            return self.shape.is_valid(value)
        return bool(self.check(value))  # type: ignore[misc]

    def inspect(self, record: Mapping[str, Any]) -> FieldError | None:
        """Return the error for this field in ``record``, or ``None``."""
        if self.name not in record:
            if not self.required:
                return None
            return FieldError(
                field=self.name,
                message=f"Missing or invalid {self.name} field",
                value=None,
            )

        value = record[self.name]
        if value is None and not self.required:
            return None

        if self.shape is not None:
            outcome = self.shape.validate(value)
            if isinstance(outcome, Valid):
                return None
            return FieldError(
                field=self.name,
                message=self.message,
                value=value,
                nested=outcome.errors,
            )

        if self.accepts(value):
            return None
        return FieldError(
            field=self.name,
            message=self.message,
            value=value,
            nested=self._element_errors(value),
        )

    def _element_errors(self, value: object) -> tuple[FieldError, ...]:
        """Report failing array indexes when an element predicate is set."""
        if self.each is None or not is_array(value):
            return ()
        return tuple(
            FieldError(field=f"{self.name}[{index}]", message=self.each_message, value=item)
            for index, item in enumerate(value)
            if not self.each(item)
        )


class Shape:
    """Named record shape composed from field rules."""

    def __init__(self, name: str, fields: tuple[FieldRule, ...] | list[FieldRule]) -> None:
        names = [rule.name for rule in fields]
        if len(names) != len(set(names)):
            raise ValueError(f"shape {name!r} declares a field more than once")
        self._name = name
        self._fields = tuple(fields)

    @property
    def name(self) -> str:
        return self._name

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self._fields)

    def is_valid(self, value: object) -> bool:
        """Fast narrowing: ``True`` only when every field rule passes."""
        if not is_record(value):
            return False
        for rule in self._fields:
            if rule.name not in value:
                if rule.required:
                    return False
                continue
            item = value[rule.name]
            if item is None and not rule.required:
                continue
            if not rule.accepts(item):
                return False
        return True

    def validate(self, value: object) -> ValidationResult:
        """Detailed validation collecting one error per failing field."""
        if not is_record(value):
            return Invalid(
                errors=(
                    FieldError(
                        field=ROOT_FIELD,
                        message=f"{self._name} must be an object",
                        value=value,
                    ),
                )
            )

        errors = [
            error
            for error in (rule.inspect(value) for rule in self._fields)
            if error is not None
        ]
        if errors:
            return Invalid(errors=tuple(errors))
        return Valid(data=value)

    def extend(self, name: str, *fields: FieldRule) -> "Shape":
        """Return a new shape with extra rules appended after these ones."""
        return Shape(name, (*self._fields, *fields))

    def __repr__(self) -> str:
        return f"Shape({self._name!r}, fields={list(self.field_names)!r})"
