"""Discriminated-union validation over ``{type, timestamp, data}`` envelopes.

Validation runs in two steps. The generic envelope is checked first: the
value is a record, the discriminant is a string, the timestamp is a valid
instant and the payload is a record. Only then is the discriminant used to
pick the variant payload shape. Unknown discriminants are rejected.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .predicates import is_date, is_record, is_string
from .shapes import ROOT_FIELD, FieldError, Invalid, Shape, Valid, ValidationResult


class TaggedUnion:
    """Closed set of named payload shapes selected by a discriminant field."""

    def __init__(
        self,
        name: str,
        *,
        variants: Mapping[str, Shape],
        discriminant: str = "type",
        timestamp_field: str = "timestamp",
        payload_field: str = "data",
    ) -> None:
        if not variants:
            raise ValueError(f"tagged union {name!r} requires at least one variant")
        self._name = name
        self._variants = dict(variants)
        self._discriminant = discriminant
        self._timestamp_field = timestamp_field
        self._payload_field = payload_field

    @property
    def name(self) -> str:
        return self._name

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(self._variants)

    @property
    def discriminant(self) -> str:
        return self._discriminant

    def variant_of(self, value: object) -> str | None:
        """Return the known variant name carried by ``value``, if any."""
        if not is_record(value):
            return None
        tag = value.get(self._discriminant)
        if is_string(tag) and tag in self._variants:
            return tag
        return None

    def is_valid(self, value: object) -> bool:
        """Fast narrowing over envelope plus variant payload."""
        if self._envelope_errors(value):
            return False
        assert is_record(value)
        shape = self._variants.get(value[self._discriminant])
        if shape is None:
            return False
        return shape.is_valid(value[self._payload_field])

    def validate(self, value: object) -> ValidationResult:
        """Detailed validation; payload errors nest under the payload field."""
        envelope_errors = self._envelope_errors(value)
        if envelope_errors:
            return Invalid(errors=envelope_errors)
        assert is_record(value)

        tag = value[self._discriminant]
        shape = self._variants.get(tag)
        if shape is None:
            return Invalid(
                errors=(
                    FieldError(
                        field=self._discriminant,
                        message=f"Unknown {self._name} {self._discriminant}: {tag}",
                        value=tag,
                    ),
                )
            )

        payload = value[self._payload_field]
        outcome = shape.validate(payload)
        if isinstance(outcome, Invalid):
            return Invalid(
                errors=(
                    FieldError(
                        field=self._payload_field,
                        message=f"Invalid {tag} payload",
                        value=payload,
                        nested=outcome.errors,
                    ),
                )
            )
        return Valid(data=value)

    def _envelope_errors(self, value: object) -> tuple[FieldError, ...]:
        if not is_record(value):
            return (
                FieldError(
                    field=ROOT_FIELD,
                    message=f"{self._name} must be an object",
                    value=value,
                ),
            )

        errors: list[FieldError] = []
        checks: tuple[tuple[str, Any, str], ...] = (
            (self._discriminant, is_string, "must be a string"),
            (self._timestamp_field, is_date, "must be a timezone-aware datetime"),
            (self._payload_field, is_record, "must be an object"),
        )
        for field_name, predicate, requirement in checks:
            if field_name not in value:
                errors.append(
                    FieldError(
                        field=field_name,
                        message=f"Missing or invalid {field_name} field",
                    )
                )
            elif not predicate(value[field_name]):
                errors.append(
                    FieldError(
                        field=field_name,
                        message=f"{field_name} {requirement}",
                        value=value[field_name],
                    )
                )
        return tuple(errors)
