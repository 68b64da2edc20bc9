"""Audit event variants, their wire shapes and narrowed models.

Every audit event travels as a ``{type, timestamp, data}`` envelope. The
``type`` discriminant selects exactly one payload shape; unknown tags are
rejected. Narrowed events are pydantic models discriminated on ``type`` so a
``match`` over them can be checked for exhaustiveness.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, TypeAlias, assert_never

from pydantic import Field, TypeAdapter

from packages.intake_shared.validation import FieldRule, Shape, TaggedUnion
from packages.intake_shared.validation.predicates import (
    is_boolean,
    is_non_empty_string,
    is_plain_object,
    is_record,
    is_string,
    one_of,
)
from services.state.user_authority.domain import User, WireModel, plain_copy
from services.state.user_authority.shapes import USER_SHAPE


class EventKind(str, Enum):
    """Closed set of audit event discriminants."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    LOGIN_ATTEMPT = "login-attempt"


USER_SOURCES = ("registration", "admin", "import")

CREATED_PAYLOAD_SHAPE = Shape(
    "UserCreatedPayload",
    [
        FieldRule("user", "user must be a valid user", shape=USER_SHAPE),
        FieldRule(
            "source",
            f"source must be one of: {', '.join(USER_SOURCES)}",
            check=one_of(*USER_SOURCES),
        ),
        FieldRule(
            "metadata",
            "metadata must be a plain object",
            check=is_plain_object,
            required=False,
        ),
    ],
)

UPDATED_PAYLOAD_SHAPE = Shape(
    "UserUpdatedPayload",
    [
        FieldRule("userId", "userId must be a non-empty string", check=is_non_empty_string),
        FieldRule("changes", "changes must be an object", check=is_record),
        FieldRule("previousValues", "previousValues must be an object", check=is_record),
        FieldRule("updatedBy", "updatedBy must be a non-empty string", check=is_non_empty_string),
    ],
)

DELETED_PAYLOAD_SHAPE = Shape(
    "UserDeletedPayload",
    [
        FieldRule("userId", "userId must be a non-empty string", check=is_non_empty_string),
        FieldRule("deletedBy", "deletedBy must be a non-empty string", check=is_non_empty_string),
        FieldRule(
            "reason",
            "reason must be a string",
            check=is_string,
            required=False,
        ),
        FieldRule("backup", "backup must be a valid user", shape=USER_SHAPE),
    ],
)

LOGIN_ATTEMPT_PAYLOAD_SHAPE = Shape(
    "LoginAttemptPayload",
    [
        FieldRule("userId", "userId must be a non-empty string", check=is_non_empty_string),
        FieldRule("ip", "ip must be a non-empty string", check=is_non_empty_string),
        FieldRule(
            "userAgent", "userAgent must be a non-empty string", check=is_non_empty_string
        ),
        FieldRule("successful", "successful must be a boolean", check=is_boolean),
        FieldRule(
            "failureReason",
            "failureReason must be a string",
            check=is_string,
            required=False,
        ),
    ],
)

AUDIT_EVENT_UNION = TaggedUnion(
    "AuditEvent",
    variants={
        EventKind.CREATED.value: CREATED_PAYLOAD_SHAPE,
        EventKind.UPDATED.value: UPDATED_PAYLOAD_SHAPE,
        EventKind.DELETED.value: DELETED_PAYLOAD_SHAPE,
        EventKind.LOGIN_ATTEMPT.value: LOGIN_ATTEMPT_PAYLOAD_SHAPE,
    },
)


class UserCreatedData(WireModel):
    user: User
    source: Literal["registration", "admin", "import"]
    metadata: dict[str, Any] | None = None


class UserUpdatedData(WireModel):
    user_id: str
    changes: dict[str, Any]
    previous_values: dict[str, Any]
    updated_by: str


class UserDeletedData(WireModel):
    user_id: str
    deleted_by: str
    reason: str | None = None
    backup: User


class LoginAttemptData(WireModel):
    user_id: str
    ip: str
    user_agent: str
    successful: bool
    failure_reason: str | None = None


class UserCreatedEvent(WireModel):
    type: Literal["created"]
    timestamp: datetime
    data: UserCreatedData


class UserUpdatedEvent(WireModel):
    type: Literal["updated"]
    timestamp: datetime
    data: UserUpdatedData


class UserDeletedEvent(WireModel):
    type: Literal["deleted"]
    timestamp: datetime
    data: UserDeletedData


class LoginAttemptEvent(WireModel):
    type: Literal["login-attempt"]
    timestamp: datetime
    data: LoginAttemptData


AuditEvent: TypeAlias = Annotated[
    UserCreatedEvent | UserUpdatedEvent | UserDeletedEvent | LoginAttemptEvent,
    Field(discriminator="type"),
]

_AUDIT_EVENT_ADAPTER: TypeAdapter[AuditEvent] = TypeAdapter(AuditEvent)


def build_event(
    kind: EventKind,
    *,
    timestamp: datetime,
    data: Mapping[str, Any],
) -> dict[str, Any]:
    """Assemble one wire envelope; payload values are deep-copied."""
    return {"type": kind.value, "timestamp": timestamp, "data": plain_copy(data)}


def narrow_event(record: object) -> AuditEvent | None:
    """Narrow a wire envelope into its typed variant, or ``None`` if invalid."""
    if not AUDIT_EVENT_UNION.is_valid(record):
        return None
    assert isinstance(record, Mapping)
    return _AUDIT_EVENT_ADAPTER.validate_python(plain_copy(record))


def event_subject(event: AuditEvent) -> str:
    """Return the id of the user an event concerns."""
    match event:
        case UserCreatedEvent():
            return event.data.user.id
        case UserUpdatedEvent() | UserDeletedEvent() | LoginAttemptEvent():
            return event.data.user_id
        case _:
            assert_never(event)


def describe_event(event: AuditEvent) -> str:
    """Render a short human-readable summary of one audit event."""
    match event:
        case UserCreatedEvent():
            return f"user {event.data.user.id} created via {event.data.source}"
        case UserUpdatedEvent():
            changed = ", ".join(sorted(event.data.changes)) or "nothing"
            return (
                f"user {event.data.user_id} updated by {event.data.updated_by}: {changed}"
            )
        case UserDeletedEvent():
            summary = f"user {event.data.user_id} deleted by {event.data.deleted_by}"
            if event.data.reason:
                summary = f"{summary} ({event.data.reason})"
            return summary
        case LoginAttemptEvent():
            outcome = "succeeded" if event.data.successful else "failed"
            summary = f"login for {event.data.user_id} from {event.data.ip} {outcome}"
            if not event.data.successful and event.data.failure_reason:
                summary = f"{summary}: {event.data.failure_reason}"
            return summary
        case _:
            assert_never(event)
