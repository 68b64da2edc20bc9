"""Convenience constructors for typed operation results."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar

from packages.intake_shared.errors import ClassifiedError

from .result import Failure, Success


T = TypeVar("T")


def success(data: T, metadata: Mapping[str, Any] | None = None) -> Success[T]:
    """Build a successful result; empty metadata is dropped."""
    return Success(data=data, metadata=_optional(metadata))


def failure(
    error: ClassifiedError,
    context: Mapping[str, Any] | None = None,
) -> Failure:
    """Build a failed result; empty context is dropped."""
    return Failure(error=error, context=_optional(context))


def _optional(values: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Copy non-empty mappings into a plain dict, otherwise ``None``."""
    if not values:
        return None
    return dict(values)
