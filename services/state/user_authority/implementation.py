"""Concrete User Authority Service implementation."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, Callable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from packages.intake_shared.config import IntakeSettings
from packages.intake_shared.errors import (
    ValidationError,
    business_error,
    codes,
    data_corruption_error,
    not_found_error,
    validation_error,
)
from packages.intake_shared.ids import new_prefixed_id
from packages.intake_shared.logging import fields, get_logger, log_context, operation_logged
from packages.intake_shared.result import (
    Failure,
    Page,
    Result,
    failure,
    result_boundary,
    success,
)
from packages.intake_shared.validation import (
    AssertionFailure,
    Invalid,
    assert_defined,
    assert_shape,
)
from packages.intake_shared.validation.predicates import is_date, is_record
from services.state.user_authority.audit import AuditLog, EventFeed
from services.state.user_authority.component import SERVICE_COMPONENT_ID
from services.state.user_authority.config import (
    UserAuthoritySettings,
    resolve_user_authority_settings,
)
from services.state.user_authority.domain import DeleteConfirmation, User, plain_copy
from services.state.user_authority.events import (
    AUDIT_EVENT_UNION,
    LOGIN_ATTEMPT_PAYLOAD_SHAPE,
    USER_SOURCES,
    AuditEvent,
    EventKind,
    LoginAttemptEvent,
    build_event,
    describe_event,
    event_subject,
    narrow_event,
)
from services.state.user_authority.service import UserAuthorityService
from services.state.user_authority.shapes import UPDATABLE_FIELDS, USER_SHAPE
from services.state.user_authority.validation import (
    ActorRequest,
    ListEventsRequest,
    ListUsersRequest,
    UserIdRequest,
    error_code_for,
    wire_field_for,
)

_LOGGER = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class DefaultUserAuthorityService(UserAuthorityService):
    """In-memory user store with a bounded audit trail.

    Users are kept as deep-copied wire mappings keyed by id. Every read
    re-validates the stored mapping before narrowing it, so corrupted entries
    are reported instead of returned. One re-entrant lock is held for the
    whole of each operation, which makes every public call atomic with
    respect to the others.
    """

    def __init__(
        self,
        *,
        settings: UserAuthoritySettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._settings = settings
        self._clock = clock or _utc_now
        self._lock = threading.RLock()
        self._users: dict[str, dict[str, Any]] = {}
        self._events = AuditLog(capacity=settings.event_capacity)
        self._feeds: list[EventFeed] = []
        self._open = True

    @classmethod
    def from_settings(
        cls,
        settings: IntakeSettings,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> "DefaultUserAuthorityService":
        """Build the store from typed root settings."""
        return cls(settings=resolve_user_authority_settings(settings), clock=clock)

    @property
    def settings(self) -> UserAuthoritySettings:
        return self._settings

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._open

    @property
    def size(self) -> int:
        """Number of stored entries, including any that fail validation."""
        with self._lock:
            return len(self._users)

    @property
    def event_count(self) -> int:
        with self._lock:
            return len(self._events)

    def initialize(self) -> None:
        """Open the store with empty state; calling it on an open store is a no-op."""
        with self._lock:
            if self._open:
                return
            self._users.clear()
            self._events.clear()
            self._open = True
            _LOGGER.info("User store initialized")

    def teardown(self) -> None:
        """Close the store, discarding users, audit entries and open feeds."""
        with self._lock:
            for feed in self._feeds:
                feed.close()
            self._feeds.clear()
            self._users.clear()
            self._events.clear()
            self._open = False
            _LOGGER.info("User store torn down")

    def __enter__(self) -> "DefaultUserAuthorityService":
        self.initialize()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.teardown()

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID)
    @result_boundary(logger=_LOGGER)
    def create_user(
        self,
        *,
        user_data: object,
        actor: str | None = None,
        source: str | None = None,
    ) -> Result[User]:
        """Validate and store one new user with generated system fields."""
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            request, error = self._validate_request(
                model=ActorRequest,
                payload={"actor": self._actor(actor)},
            )
            if error is not None:
                return failure(error)
            assert isinstance(request, ActorRequest)

            resolved_source = self._settings.default_source if source is None else source
            if not isinstance(resolved_source, str) or resolved_source not in USER_SOURCES:
                return failure(
                    validation_error(
                        "source",
                        f"source must be one of: {', '.join(USER_SOURCES)}",
                        code=codes.INVALID_USER_DATA,
                    )
                )

            now = self._now()
            candidate: object = user_data
            if is_record(user_data):
                candidate = {
                    **user_data,
                    "id": self._new_id(now),
                    "createdAt": now,
                    "updatedAt": now,
                }

            outcome = USER_SHAPE.validate(candidate)
            if isinstance(outcome, Invalid):
                return _invalid(
                    outcome,
                    field="userData",
                    message="Invalid user data",
                    code=codes.INVALID_USER_DATA,
                )

            record = _snapshot(outcome.data)
            self._append_event(
                EventKind.CREATED,
                timestamp=now,
                data={
                    "user": record,
                    "source": resolved_source,
                    "metadata": {"actor": request.actor},
                },
            )
            self._users[record["id"]] = record
            return success(User.from_wire(record), metadata={"created": True})

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID, id_fields=("user_id",))
    @result_boundary(logger=_LOGGER)
    def get_user(self, *, user_id: object) -> Result[User]:
        """Return one stored user after re-validating it."""
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            record, load_failure = self._load(user_id)
            if load_failure is not None:
                return load_failure
            assert record is not None
            return success(User.from_wire(record))

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID)
    @result_boundary(logger=_LOGGER)
    def list_users(
        self,
        *,
        page: object = 1,
        limit: object = None,
        sort_by: object = "createdAt",
        sort_order: object = "desc",
        is_active: object = None,
        tag: object = None,
    ) -> Result[Page[User]]:
        """Return one sorted page of valid stored users.

        Entries that fail validation are left out, logged and listed by id in
        result metadata under ``excluded``. Sorting is stable, so users with
        equal keys keep insertion order in both directions.
        """
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            request, error = self._validate_request(
                model=ListUsersRequest,
                payload={
                    "page": page,
                    "limit": self._settings.default_page_limit if limit is None else limit,
                    "sort_by": sort_by,
                    "sort_order": sort_order,
                    "is_active": is_active,
                    "tag": tag,
                },
                context={"max_limit": self._settings.max_page_limit},
            )
            if error is not None:
                return failure(error)
            assert isinstance(request, ListUsersRequest)

            records, excluded = self._valid_users()
            matched = [record for record in records if _matches(record, request)]
            ordered = sorted(
                matched,
                key=lambda record: record[request.sort_by],
                reverse=request.sort_order == "desc",
            )
            start = (request.page - 1) * request.limit
            items = tuple(
                User.from_wire(record) for record in ordered[start : start + request.limit]
            )
            return success(
                Page(items=items, page=request.page, limit=request.limit, total=len(matched)),
                metadata={"excluded": excluded} if excluded else None,
            )

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID, id_fields=("user_id",))
    @result_boundary(logger=_LOGGER)
    def update_user(
        self,
        *,
        user_id: object,
        changes: object,
        actor: str | None = None,
    ) -> Result[User]:
        """Apply a partial update and re-validate the merged user.

        Only ``name``, ``contact``, ``age``, ``isActive``, ``tags`` and
        ``metadata`` are applied; ``id`` and ``createdAt`` never change and
        ``updatedAt`` is regenerated.
        """
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            request, error = self._validate_request(
                model=ActorRequest,
                payload={"actor": self._actor(actor)},
            )
            if error is not None:
                return failure(error)
            assert isinstance(request, ActorRequest)

            existing, load_failure = self._load(user_id)
            if load_failure is not None:
                return load_failure
            assert existing is not None

            if not is_record(changes):
                return failure(
                    validation_error(
                        "updates",
                        "Updates must be an object",
                        code=codes.INVALID_UPDATES,
                    )
                )
            applied = {
                key: plain_copy(value)
                for key, value in changes.items()
                if key in UPDATABLE_FIELDS
            }
            if not applied:
                return failure(
                    validation_error(
                        "updates",
                        "Updates must change at least one of: "
                        + ", ".join(sorted(UPDATABLE_FIELDS)),
                        code=codes.INVALID_UPDATES,
                    )
                )

            now = max(self._now(), existing["updatedAt"])
            outcome = USER_SHAPE.validate({**existing, **applied, "updatedAt": now})
            if isinstance(outcome, Invalid):
                return _invalid(
                    outcome,
                    field="userData",
                    message="Updated user data is invalid",
                    code=codes.INVALID_UPDATED_DATA,
                )

            updated = _snapshot(outcome.data)
            self._append_event(
                EventKind.UPDATED,
                timestamp=now,
                data={
                    "userId": updated["id"],
                    "changes": applied,
                    "previousValues": existing,
                    "updatedBy": request.actor,
                },
            )
            self._users[updated["id"]] = updated
            return success(User.from_wire(updated), metadata={"updated": True})

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID, id_fields=("user_id",))
    @result_boundary(logger=_LOGGER)
    def delete_user(
        self,
        *,
        user_id: object,
        actor: str | None = None,
        reason: str | None = None,
    ) -> Result[DeleteConfirmation]:
        """Remove one user, keeping a backup copy in the audit trail."""
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            request, error = self._validate_request(
                model=ActorRequest,
                payload={"actor": self._actor(actor), "reason": reason},
            )
            if error is not None:
                return failure(error)
            assert isinstance(request, ActorRequest)

            existing, load_failure = self._load(user_id)
            if load_failure is not None:
                return load_failure
            assert existing is not None

            deleted_id = existing["id"]
            payload: dict[str, Any] = {
                "userId": deleted_id,
                "deletedBy": request.actor,
                "backup": existing,
            }
            if request.reason is not None:
                payload["reason"] = request.reason
            self._append_event(EventKind.DELETED, timestamp=self._now(), data=payload)
            del self._users[deleted_id]
            return success(
                DeleteConfirmation(
                    id=deleted_id,
                    message=f"User {deleted_id} deleted successfully",
                ),
                metadata={"deleted": True},
            )

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID)
    @result_boundary(logger=_LOGGER)
    def list_events(
        self,
        *,
        kind: EventKind | str | None = None,
    ) -> Result[tuple[AuditEvent, ...]]:
        """Return valid retained audit events, newest first.

        Events with equal timestamps are ordered by append position, latest
        first. Invalid entries are left out and listed by log position in
        result metadata under ``excluded``.
        """
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            request, error = self._validate_request(
                model=ListEventsRequest,
                payload={"kind": kind.value if isinstance(kind, EventKind) else kind},
            )
            if error is not None:
                return failure(error)
            assert isinstance(request, ListEventsRequest)

            selected: list[tuple[datetime, int, AuditEvent]] = []
            excluded: list[int] = []
            for position, record in enumerate(self._events):
                event = narrow_event(record)
                if event is None:
                    _LOGGER.warning(
                        "Retained audit event failed validation: position=%s",
                        position,
                    )
                    excluded.append(position)
                    continue
                if request.kind is None or event.type == request.kind:
                    selected.append((event.timestamp, position, event))

            ordered = sorted(selected, key=lambda item: item[:2], reverse=True)
            return success(
                tuple(event for _, _, event in ordered),
                metadata={"excluded": excluded} if excluded else None,
            )

    @operation_logged(logger=_LOGGER, component=SERVICE_COMPONENT_ID, id_fields=("user_id",))
    @result_boundary(logger=_LOGGER)
    def record_login_attempt(
        self,
        *,
        user_id: object,
        ip: object,
        user_agent: object,
        successful: object,
        failure_reason: object = None,
    ) -> Result[LoginAttemptEvent]:
        """Append one login attempt; the user does not need to exist."""
        with self._lock:
            unavailable = self._unavailable()
            if unavailable is not None:
                return unavailable

            payload: dict[str, Any] = {
                "userId": user_id,
                "ip": ip,
                "userAgent": user_agent,
                "successful": successful,
            }
            if failure_reason is not None:
                payload["failureReason"] = failure_reason

            outcome = LOGIN_ATTEMPT_PAYLOAD_SHAPE.validate(payload)
            if isinstance(outcome, Invalid):
                return _invalid(
                    outcome,
                    field="loginAttempt",
                    message="Invalid login attempt",
                    code=codes.INVALID_LOGIN_ATTEMPT,
                )

            event = self._append_event(
                EventKind.LOGIN_ATTEMPT,
                timestamp=self._now(),
                data=outcome.data,
            )
            assert isinstance(event, LoginAttemptEvent)
            return success(event)

    def open_feed(self, *, capacity: int | None = None) -> EventFeed:
        """Open a live feed receiving audit events appended from now on."""
        with self._lock:
            if not self._open:
                raise RuntimeError("user store is not initialized")
            feed = EventFeed(
                capacity=self._settings.feed_capacity if capacity is None else capacity
            )
            self._feeds.append(feed)
            return feed

    def _unavailable(self) -> Failure | None:
        """Return a failure when the store has been torn down."""
        if self._open:
            return None
        return failure(
            business_error(codes.STORE_UNAVAILABLE, "User store is not initialized")
        )

    def _actor(self, actor: str | None) -> object:
        return self._settings.default_actor if actor is None else actor

    def _now(self) -> datetime:
        """Read the injected clock; it must produce timezone-aware instants."""
        now = self._clock()
        if not is_date(now):
            raise AssertionFailure("clock", now, "timezone-aware datetime")
        return now

    def _new_id(self, now: datetime) -> str:
        timestamp_ms = max(int(now.timestamp() * 1000), 0)
        while True:
            candidate = new_prefixed_id(self._settings.id_prefix, timestamp_ms=timestamp_ms)
            if candidate not in self._users:
                return candidate

    def _load(self, user_id: object) -> tuple[dict[str, Any] | None, Failure | None]:
        """Fetch one stored user mapping, re-validated against the user shape."""
        request, error = self._validate_request(
            model=UserIdRequest,
            payload={"user_id": user_id},
        )
        if error is not None:
            return None, failure(error)
        assert isinstance(request, UserIdRequest)

        record = self._users.get(request.user_id)
        if record is None:
            return None, failure(
                not_found_error(
                    f"User with ID {request.user_id} not found",
                    details={"id": request.user_id},
                )
            )
        if record.get("id") != request.user_id or not USER_SHAPE.is_valid(record):
            with log_context({fields.USER_ID: request.user_id}):
                _LOGGER.warning("Stored user failed validation")
            return None, failure(
                data_corruption_error(
                    "Stored user data is corrupted",
                    details={"id": request.user_id},
                )
            )
        return record, None

    def _valid_users(self) -> tuple[list[dict[str, Any]], list[str]]:
        """Split stored entries into valid mappings and excluded ids."""
        valid: list[dict[str, Any]] = []
        excluded: list[str] = []
        for key, record in self._users.items():
            if record.get("id") == key and USER_SHAPE.is_valid(record):
                valid.append(record)
                continue
            with log_context({fields.USER_ID: key}):
                _LOGGER.warning("Stored user failed validation; excluded from listing")
            excluded.append(key)
        return valid, excluded

    def _append_event(
        self,
        kind: EventKind,
        *,
        timestamp: datetime,
        data: Mapping[str, Any],
    ) -> AuditEvent:
        """Append one store-built event and publish it to open feeds.

        A malformed event is a defect: the assertion fires before the log or
        any feed changes, and callers mutate users only after this returns.
        """
        record = build_event(kind, timestamp=timestamp, data=data)
        assert_shape(record, AUDIT_EVENT_UNION, "event")
        self._events.append(record)

        event = assert_defined(narrow_event(record), "event")
        self._feeds = [feed for feed in self._feeds if not feed.closed]
        for feed in self._feeds:
            feed.publish(event)

        with log_context({fields.EVENT_TYPE: kind.value, fields.USER_ID: event_subject(event)}):
            _LOGGER.info("Audit event recorded: %s", describe_event(event))
        return event

    def _validate_request(
        self,
        *,
        model: type[BaseModel],
        payload: dict[str, Any],
        context: dict[str, Any] | None = None,
    ) -> tuple[BaseModel | None, ValidationError | None]:
        """Validate one request payload with stable field names and codes."""
        try:
            validated = model.model_validate(payload, context=context)
        except PydanticValidationError as exc:
            issue = exc.errors()[0]
            loc = issue.get("loc", ())
            name = str(loc[0]) if loc else "payload"
            field = wire_field_for(name)
            message = f"{field}: {issue.get('msg', 'invalid value')}"
            return None, validation_error(field, message, code=error_code_for(name))

        return validated, None


def _snapshot(record: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-copy only the declared user fields of ``record``."""
    return {
        name: plain_copy(record[name])
        for name in USER_SHAPE.field_names
        if name in record
    }


def _matches(record: Mapping[str, Any], request: ListUsersRequest) -> bool:
    if request.is_active is not None and record["isActive"] is not request.is_active:
        return False
    if request.tag is not None and request.tag not in record["tags"]:
        return False
    return True


def _invalid(outcome: Invalid, *, field: str, message: str, code: str) -> Failure:
    """Fold detailed field errors into one classified validation failure."""
    return failure(
        validation_error(field, f"{message}: {', '.join(outcome.fields())}", code=code),
        context={"errors": [error.to_dict() for error in outcome.errors]},
    )
