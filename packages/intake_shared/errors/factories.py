"""Factory helpers for creating consistent classified errors."""

from __future__ import annotations

from typing import Any, Mapping

from . import codes
from .types import BusinessError, NetworkError, ValidationError


def validation_error(
    field: str,
    message: str,
    *,
    code: str = codes.VALIDATION_ERROR,
) -> ValidationError:
    """Create a validation-kind error for one named field."""
    return ValidationError(field=field, message=message, code=code)


def network_error(message: str, *, status: int, endpoint: str) -> NetworkError:
    """Create a network-kind error for one endpoint."""
    return NetworkError(status=status, message=message, endpoint=endpoint)


def business_error(
    code: str,
    message: str,
    *,
    details: Mapping[str, Any] | None = None,
) -> BusinessError:
    """Create a business-kind error."""
    return BusinessError(code=code, message=message, details=_details(details))


def not_found_error(
    message: str,
    *,
    details: Mapping[str, Any] | None = None,
) -> BusinessError:
    """Create a ``business``/``NOT_FOUND`` error."""
    return business_error(codes.NOT_FOUND, message, details=details)


def data_corruption_error(
    message: str,
    *,
    details: Mapping[str, Any] | None = None,
) -> BusinessError:
    """Create a ``business``/``DATA_CORRUPTION`` error.

    Corruption is not retriable: it means the store's own data is
    inconsistent and must be surfaced rather than repaired in place.
    """
    return business_error(codes.DATA_CORRUPTION, message, details=details)


def internal_error(
    message: str,
    *,
    details: Mapping[str, Any] | None = None,
) -> BusinessError:
    """Create a ``business``/``INTERNAL_ERROR`` error."""
    return business_error(codes.INTERNAL_ERROR, message, details=details)


def _details(details: Mapping[str, Any] | None) -> dict[str, Any] | None:
    """Normalize optional details into a plain dict."""
    if details is None:
        return None
    return dict(details)
