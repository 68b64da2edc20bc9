"""Serialization of operation results into the caller-visible wire shape."""

from __future__ import annotations

from typing import Any, assert_never

from pydantic_core import to_jsonable_python

from .page import Page
from .result import Failure, Result, Success


def to_wire(result: Result[Any]) -> dict[str, Any]:
    """Serialize ``result`` into ``{success, data?, error?, pagination?, ...}``.

    Pydantic models are dumped by alias so entity keys match the camelCase
    input contract. Datetimes become ISO-8601 strings.
    """
    match result:
        case Success():
            payload: dict[str, Any] = {"success": True}
            if isinstance(result.data, Page):
                payload["data"] = _jsonable(list(result.data.items))
                payload["pagination"] = result.data.pagination()
            else:
                payload["data"] = _jsonable(result.data)
            if result.metadata is not None:
                payload["metadata"] = _jsonable(dict(result.metadata))
            return payload
        case Failure():
            payload = {"success": False, "error": _jsonable(result.error.to_dict())}
            if result.context is not None:
                payload["context"] = _jsonable(dict(result.context))
            return payload
        case _:
            assert_never(result)


def _jsonable(value: Any) -> Any:
    """Convert models, dataclasses and datetimes to JSON-compatible values."""
    return to_jsonable_python(value, by_alias=True, fallback=repr)
