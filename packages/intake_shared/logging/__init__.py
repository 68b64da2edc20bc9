"""Public logging API for Intake.

Wraps Python's ``logging`` module with stdout defaults and structured
context propagation.
"""

from .config import configure_logging, get_logger
from .context import bind_context, clear_context, get_context, log_context
from .operations import (
    CompletionContext,
    InvocationContext,
    OperationConcern,
    OperationLoggingConcern,
    operation_logged,
)
from .telemetry import (
    OperationMetricsConcern,
    OperationTracingConcern,
    default_telemetry_concerns,
)

__all__ = [
    "CompletionContext",
    "InvocationContext",
    "OperationConcern",
    "OperationLoggingConcern",
    "OperationMetricsConcern",
    "OperationTracingConcern",
    "bind_context",
    "clear_context",
    "configure_logging",
    "default_telemetry_concerns",
    "get_context",
    "get_logger",
    "log_context",
    "operation_logged",
]
