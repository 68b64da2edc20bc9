"""Transport status policy for classified errors.

The mapping lives beside the error types so every transport adapter uses the
same table, but it is policy: the core never depends on it.
"""

from __future__ import annotations

from typing import assert_never

from . import codes
from .types import BusinessError, ClassifiedError, NetworkError, ValidationError


def http_status_for(error: ClassifiedError) -> int:
    """Return the HTTP status a transport should use for ``error``."""
    match error:
        case ValidationError():
            return 400
        case NetworkError():
            return error.status or 500
        case BusinessError():
            return 404 if error.code == codes.NOT_FOUND else 500
        case _:
            assert_never(error)
