"""Public operation result API for Intake."""

from .boundary import result_boundary
from .builders import failure, success
from .page import Page
from .result import Failure, Result, Success, is_failure, is_success
from .wire import to_wire

__all__ = [
    "Failure",
    "Page",
    "Result",
    "Success",
    "failure",
    "is_failure",
    "is_success",
    "result_boundary",
    "success",
    "to_wire",
]
