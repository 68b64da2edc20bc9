"""Public classified error API for Intake."""

from . import codes
from .factories import (
    business_error,
    data_corruption_error,
    internal_error,
    network_error,
    not_found_error,
    validation_error,
)
from .normalize import exception_to_error
from .status import http_status_for
from .types import (
    BusinessError,
    ClassifiedError,
    ErrorKind,
    NetworkError,
    ValidationError,
    is_business_error,
    is_network_error,
    is_validation_error,
)

__all__ = [
    "BusinessError",
    "ClassifiedError",
    "ErrorKind",
    "NetworkError",
    "ValidationError",
    "business_error",
    "codes",
    "data_corruption_error",
    "exception_to_error",
    "http_status_for",
    "internal_error",
    "is_business_error",
    "is_network_error",
    "is_validation_error",
    "network_error",
    "not_found_error",
    "validation_error",
]
