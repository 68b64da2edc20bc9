"""Request validation models for User Authority Service public API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from packages.intake_shared.errors import codes

SortField = Literal["id", "name", "age", "isActive", "createdAt", "updatedAt"]
SortOrder = Literal["asc", "desc"]
EventType = Literal["created", "updated", "deleted", "login-attempt"]

_FIELD_CODES = {
    "user_id": codes.INVALID_ID,
    "page": codes.INVALID_PAGINATION,
    "limit": codes.INVALID_PAGINATION,
    "sort_by": codes.INVALID_SORT,
    "sort_order": codes.INVALID_SORT,
    "is_active": codes.INVALID_FILTER,
    "tag": codes.INVALID_FILTER,
    "kind": codes.INVALID_EVENT_TYPE,
}
_WIRE_FIELDS = {"user_id": "id", "kind": "type"}


def error_code_for(field_name: str) -> str:
    """Return the stable error code for one invalid request field."""
    return _FIELD_CODES.get(field_name, codes.VALIDATION_ERROR)


def wire_field_for(field_name: str) -> str:
    """Return the wire key reported for one request field."""
    return _WIRE_FIELDS.get(field_name, to_camel(field_name))


def _require_text(value: str) -> str:
    """Require text with at least one non-whitespace character."""
    if value.strip() == "":
        raise ValueError("must be a non-empty string")
    return value


class _Request(BaseModel):
    """Base request model; inputs are never coerced."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)


class UserIdRequest(_Request):
    """Validate one request addressing a single stored user."""

    user_id: str

    @field_validator("user_id")
    @classmethod
    def _validate_user_id(cls, value: str) -> str:
        """Reject blank user identifiers."""
        return _require_text(value)


class ListUsersRequest(_Request):
    """Validate one paginated list request.

    The upper bound for ``limit`` is supplied through validation context as
    ``max_limit``.
    """

    page: int = Field(default=1, ge=1)
    limit: int = Field(ge=1)
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"
    is_active: bool | None = None
    tag: str | None = None

    @field_validator("limit")
    @classmethod
    def _validate_limit(cls, value: int, info: ValidationInfo) -> int:
        """Cap page size at the configured maximum."""
        max_limit = (info.context or {}).get("max_limit")
        if max_limit is not None and value > max_limit:
            raise ValueError(f"limit must not exceed {max_limit}")
        return value

    @field_validator("tag")
    @classmethod
    def _validate_tag(cls, value: str | None) -> str | None:
        """Reject blank tag filters."""
        if value is None:
            return value
        return _require_text(value)


class ListEventsRequest(_Request):
    """Validate one audit event listing request."""

    kind: EventType | None = None


class ActorRequest(_Request):
    """Validate the actor and optional reason attached to a mutation."""

    actor: str
    reason: str | None = None

    @field_validator("actor")
    @classmethod
    def _validate_actor(cls, value: str) -> str:
        """Reject blank actor names."""
        return _require_text(value)
