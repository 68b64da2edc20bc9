"""Structured invocation/completion instrumentation for public store operations.

``operation_logged`` wraps a result-returning method and emits two records
per call: one at invocation and one at completion with outcome, duration and
a sanitized error summary. Received values are never logged. The same call
also produces one OpenTelemetry span and call/latency/error metrics.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from time import perf_counter
from typing import Any, Callable, Mapping, Protocol, Sequence

from . import fields
from .context import log_context
from .telemetry import default_telemetry_concerns


@dataclass(frozen=True)
class InvocationContext:
    """Structured metadata describing one operation call."""

    component: str
    operation: str
    references: Mapping[str, str]


@dataclass(frozen=True)
class CompletionContext:
    """Structured metadata describing one completed operation call."""

    invocation: InvocationContext
    success: bool
    duration_ms: float
    errors: list[str]
    error_kinds: list[str]


class OperationConcern(Protocol):
    """Hook contract for one operation instrumentation concern."""

    def on_invocation(self, context: InvocationContext) -> None:
        """Handle the start of one call."""

    def on_completion(self, context: CompletionContext) -> None:
        """Handle the end of one call."""


class OperationLoggingConcern:
    """Emit invocation and completion records through a logger."""

    def __init__(self, *, logger: Any) -> None:
        self._logger = logger

    def on_invocation(self, context: InvocationContext) -> None:
        with log_context(_invocation_log_context(context)):
            self._logger.debug("Operation invocation")

    def on_completion(self, context: CompletionContext) -> None:
        payload = _invocation_log_context(context.invocation)
        payload.update(
            {
                fields.EVENT: fields.OPERATION_COMPLETION_EVENT,
                fields.SUCCESS: context.success,
                fields.DURATION_MS: context.duration_ms,
                fields.ERRORS: context.errors,
                fields.ERROR_KINDS: context.error_kinds,
            }
        )
        with log_context(payload):
            if context.success:
                self._logger.info("Operation completion")
            else:
                self._logger.warning("Operation completion")


def operation_logged(
    *,
    logger: Any,
    component: str,
    operation: str | None = None,
    id_fields: tuple[str, ...] = (),
    concerns: Sequence[OperationConcern] = (),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorate one public operation with logging, tracing and metrics.

    ``id_fields`` names keyword arguments whose values are attached to both
    records (for example ``user_id``). Extra ``concerns`` run after logging
    and before the default OpenTelemetry concerns.
    """
    resolved: tuple[OperationConcern, ...] = (
        OperationLoggingConcern(logger=logger),
        *concerns,
        *default_telemetry_concerns(),
    )

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        name = operation or func.__name__

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            invocation = InvocationContext(
                component=component,
                operation=name,
                references={
                    key: str(kwargs[key])
                    for key in id_fields
                    if kwargs.get(key) not in (None, "")
                },
            )
            _dispatch(resolved, "on_invocation", invocation, logger)

            started = perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:  # noqa: BLE001
                _dispatch(
                    resolved,
                    "on_completion",
                    CompletionContext(
                        invocation=invocation,
                        success=False,
                        duration_ms=_elapsed_ms(started),
                        errors=[type(exc).__name__],
                        error_kinds=["defect"],
                    ),
                    logger,
                )
                raise

            success, errors, kinds = _result_summary(result)
            _dispatch(
                resolved,
                "on_completion",
                CompletionContext(
                    invocation=invocation,
                    success=success,
                    duration_ms=_elapsed_ms(started),
                    errors=errors,
                    error_kinds=kinds,
                ),
                logger,
            )
            return result

        return wrapper

    return decorator


def _elapsed_ms(started: float) -> float:
    return round((perf_counter() - started) * 1000.0, 3)


def _result_summary(result: object) -> tuple[bool, list[str], list[str]]:
    """Infer outcome, ``CODE: message`` summaries and error kinds."""
    if getattr(result, "success", None) is not False:
        return True, [], []
    error = getattr(result, "error", None)
    if error is None:
        return False, [], []
    code = getattr(error, "code", None)
    message = getattr(error, "message", "")
    summary = f"{code}: {message}" if code else str(message)
    kind = getattr(getattr(error, "kind", None), "value", None)
    return False, [summary], [kind] if kind else []


def _invocation_log_context(context: InvocationContext) -> dict[str, object]:
    return {
        fields.EVENT: fields.OPERATION_INVOCATION_EVENT,
        fields.COMPONENT: context.component,
        fields.OPERATION: context.operation,
        **context.references,
    }


def _dispatch(
    concerns: Sequence[OperationConcern],
    hook: str,
    context: InvocationContext | CompletionContext,
    logger: Any,
) -> None:
    """Call one hook on every concern; a failing concern never fails the call."""
    for concern in concerns:
        try:
            getattr(concern, hook)(context)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Operation instrumentation concern failed: concern=%s hook=%s exception_type=%s",
                type(concern).__name__,
                hook,
                type(exc).__name__,
            )
