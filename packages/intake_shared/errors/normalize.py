"""Exception normalization for the top-level result boundary."""

from __future__ import annotations

from .factories import internal_error
from .types import BusinessError


def exception_to_error(exc: Exception) -> BusinessError:
    """Normalize an escaped exception into ``business``/``INTERNAL_ERROR``.

    Exceptions only escape when a trust-boundary assertion fails or a defect
    slips through, so every one of them maps to the same generic error. The
    exception type is kept in details for diagnosis; the message is not
    echoed so received values never reach the caller.
    """
    return internal_error(
        "An unexpected error occurred",
        details={"exception_type": type(exc).__name__},
    )
