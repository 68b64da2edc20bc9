"""OpenTelemetry tracing and metrics concerns for store operations.

Both concerns plug into ``operation_logged`` through the same hook contract
as logging. Tracers and meters come from the global OpenTelemetry providers,
which are no-ops until an SDK is configured by the host process.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Mapping, Protocol

from opentelemetry import metrics as otel_metrics
from opentelemetry import trace as otel_trace
from opentelemetry.trace import Status, StatusCode

from . import fields

if TYPE_CHECKING:
    from .operations import CompletionContext, InvocationContext

TRACER_NAME = "intake.operations"
METER_NAME = "intake.operations"
METRIC_CALLS_TOTAL = "intake_operation_calls_total"
METRIC_DURATION_MS = "intake_operation_duration_ms"
METRIC_ERRORS_TOTAL = "intake_operation_errors_total"


class _CounterLike(Protocol):
    def add(self, amount: int | float, attributes: Mapping[str, str]) -> None:
        """Record one counter increment with attributes."""


class _HistogramLike(Protocol):
    def record(self, amount: float, attributes: Mapping[str, str]) -> None:
        """Record one sample with attributes."""


class _SpanLike(Protocol):
    def set_attribute(self, key: str, value: object) -> None:
        """Attach one attribute to a span."""

    def record_exception(self, exception: Exception) -> None:
        """Record one exception on a span."""

    def set_status(self, status: object) -> None:
        """Set the status of a span."""


class _SpanContextManagerLike(Protocol):
    def __enter__(self) -> _SpanLike:
        """Enter and return the active span."""

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        """Exit and close the active span."""


class _TracerLike(Protocol):
    def start_as_current_span(self, name: str) -> _SpanContextManagerLike:
        """Start one span and return a context manager."""


@dataclass(frozen=True)
class _TraceScope:
    manager: _SpanContextManagerLike
    span: _SpanLike


class OperationTracingConcern:
    """Open one span per operation call and close it on completion."""

    def __init__(self, *, tracer: _TracerLike) -> None:
        self._tracer = tracer
        self._active_scopes: ContextVar[tuple[_TraceScope, ...]] = ContextVar(
            "operation_tracing_scopes", default=()
        )

    def on_invocation(self, context: InvocationContext) -> None:
        manager = self._tracer.start_as_current_span(
            f"operation.{context.component}.{context.operation}"
        )
        span = manager.__enter__()
        span.set_attribute(fields.COMPONENT, context.component)
        span.set_attribute(fields.OPERATION, context.operation)
        for key, value in context.references.items():
            span.set_attribute(f"reference.{key}", value)
        self._active_scopes.set(
            (*self._active_scopes.get(), _TraceScope(manager=manager, span=span))
        )

    def on_completion(self, context: CompletionContext) -> None:
        current = self._active_scopes.get()
        if not current:
            return
        scope = current[-1]
        self._active_scopes.set(current[:-1])

        scope.span.set_attribute(fields.SUCCESS, context.success)
        scope.span.set_attribute(fields.DURATION_MS, context.duration_ms)
        scope.span.set_attribute(fields.OUTCOME, _outcome(context))
        scope.span.set_attribute("errors.count", len(context.errors))
        if not context.success:
            scope.span.set_status(Status(StatusCode.ERROR))
            if context.errors:
                scope.span.record_exception(RuntimeError("; ".join(context.errors[:3])))
        scope.manager.__exit__(None, None, None)


class OperationMetricsConcern:
    """Count calls and errors and record call latency per operation."""

    def __init__(
        self,
        *,
        calls_total: _CounterLike,
        duration_ms: _HistogramLike,
        errors_total: _CounterLike,
    ) -> None:
        self._calls_total = calls_total
        self._duration_ms = duration_ms
        self._errors_total = errors_total

    def on_invocation(self, context: InvocationContext) -> None:
        """No-op; metrics are emitted on completion."""
        del context

    def on_completion(self, context: CompletionContext) -> None:
        attrs = {
            fields.COMPONENT: context.invocation.component,
            fields.OPERATION: context.invocation.operation,
            fields.OUTCOME: _outcome(context),
        }
        self._calls_total.add(1, attributes=attrs)
        self._duration_ms.record(context.duration_ms, attributes=attrs)
        if context.success:
            return

        for kind in context.error_kinds or ["unknown"]:
            self._errors_total.add(
                1,
                attributes={
                    fields.COMPONENT: context.invocation.component,
                    fields.OPERATION: context.invocation.operation,
                    fields.ERROR_KIND: kind,
                },
            )


@lru_cache(maxsize=1)
def default_telemetry_concerns() -> tuple[OperationTracingConcern, OperationMetricsConcern]:
    """Build tracing and metrics concerns bound to the global OTel providers."""
    meter = otel_metrics.get_meter(METER_NAME)
    return (
        OperationTracingConcern(tracer=otel_trace.get_tracer(TRACER_NAME)),
        OperationMetricsConcern(
            calls_total=meter.create_counter(
                name=METRIC_CALLS_TOTAL,
                description="Count of store operation calls by component/operation/outcome.",
                unit="1",
            ),
            duration_ms=meter.create_histogram(
                name=METRIC_DURATION_MS,
                description="Store operation latency in milliseconds.",
                unit="ms",
            ),
            errors_total=meter.create_counter(
                name=METRIC_ERRORS_TOTAL,
                description="Count of failed store operations by error kind.",
                unit="1",
            ),
        ),
    )


def _outcome(context: CompletionContext) -> str:
    return "success" if context.success else "failure"
