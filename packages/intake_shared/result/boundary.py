"""Top-level handler turning escaped exceptions into failure results."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from packages.intake_shared.errors import exception_to_error

from .builders import failure


def result_boundary(
    *,
    logger: Any,
    operation: str | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate a result-returning callable so it never raises.

    Expected failures are already results. Anything that escapes is a defect
    (typically a failed trust-boundary assertion): it is logged with its
    traceback and returned as ``business``/``INTERNAL_ERROR``.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = operation or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                logger.exception(
                    "Unhandled defect in operation: operation=%s exception_type=%s",
                    name,
                    type(exc).__name__,
                )
                return failure(exception_to_error(exc), context={"operation": name})

        return wrapper

    return decorator
