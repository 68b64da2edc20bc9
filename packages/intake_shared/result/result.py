"""Two-case operation result model for in-process service boundaries."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Literal, Mapping, TypeAlias, TypeGuard, TypeVar

from packages.intake_shared.errors import ClassifiedError


T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful outcome carrying a payload and optional metadata."""

    data: T
    metadata: Mapping[str, Any] | None = None

    @property
    def success(self) -> Literal[True]:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying one classified error and optional context."""

    error: ClassifiedError
    context: Mapping[str, Any] | None = None

    @property
    def success(self) -> Literal[False]:
        return False


Result: TypeAlias = Success[T] | Failure


def is_success(result: Result[T]) -> TypeGuard[Success[T]]:
    """Return ``True`` when ``result`` is a success."""
    return isinstance(result, Success)


def is_failure(result: Result[T]) -> TypeGuard[Failure]:
    """Return ``True`` when ``result`` is a failure."""
    return isinstance(result, Failure)
