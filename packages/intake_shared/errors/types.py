"""Classified error types for Intake operation results.

Every expected failure is one of exactly three kinds. Each kind carries only
its own fields so nothing leaks across kinds when errors are serialized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, TypeAlias, TypeGuard


class ErrorKind(str, Enum):
    """Caller-visible classification labels for failed operations."""

    VALIDATION = "validation"
    NETWORK = "network"
    BUSINESS = "business"


@dataclass(frozen=True)
class ValidationError:
    """Input failed a shape or parameter check."""

    field: str
    message: str
    code: str

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.VALIDATION

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "field": self.field,
            "message": self.message,
            "code": self.code,
        }


@dataclass(frozen=True)
class NetworkError:
    """A remote call failed at the transport level."""

    status: int
    message: str
    endpoint: str

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.NETWORK

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind.value,
            "status": self.status,
            "message": self.message,
            "endpoint": self.endpoint,
        }


@dataclass(frozen=True)
class BusinessError:
    """A domain rule or store invariant rejected the operation."""

    code: str
    message: str
    details: Mapping[str, Any] | None = field(default=None)

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.BUSINESS

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "type": self.kind.value,
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = dict(self.details)
        return payload


ClassifiedError: TypeAlias = ValidationError | NetworkError | BusinessError


def is_validation_error(error: ClassifiedError) -> TypeGuard[ValidationError]:
    """Return ``True`` when ``error`` is a validation-kind error."""
    return isinstance(error, ValidationError)


def is_network_error(error: ClassifiedError) -> TypeGuard[NetworkError]:
    """Return ``True`` when ``error`` is a network-kind error."""
    return isinstance(error, NetworkError)


def is_business_error(error: ClassifiedError) -> TypeGuard[BusinessError]:
    """Return ``True`` when ``error`` is a business-kind error."""
    return isinstance(error, BusinessError)
