"""Behavior tests for User Authority Service implementation."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Any

import pytest

from packages.intake_shared.errors import ErrorKind, codes, http_status_for
from packages.intake_shared.ids import is_prefixed_id
from packages.intake_shared.result import Failure, Page, Success, to_wire
from services.state.user_authority import implementation
from services.state.user_authority.config import UserAuthoritySettings
from services.state.user_authority.domain import DeleteConfirmation, User
from services.state.user_authority.events import (
    EventKind,
    LoginAttemptEvent,
    UserCreatedEvent,
    UserDeletedEvent,
    UserUpdatedEvent,
)
from services.state.user_authority.implementation import DefaultUserAuthorityService

_START = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


class _Clock:
    """Manually advanced clock returning timezone-aware instants."""

    def __init__(self, start: datetime = _START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now = self.now + timedelta(seconds=seconds)


def _service(
    clock: _Clock | None = None, **settings: Any
) -> DefaultUserAuthorityService:
    return DefaultUserAuthorityService(
        settings=UserAuthoritySettings(**settings),
        clock=clock or _Clock(),
    )


def _user_input(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": "Ada Lovelace",
        "contact": {
            "email": "ada@example.com",
            "phone": "+1 (555) 010-9999",
            "address": {
                "street": "1 Analytical Way",
                "city": "London",
                "state": "Greater London",
                "zipCode": "NW1",
                "country": "UK",
            },
        },
        "age": 36,
        "isActive": True,
        "tags": ["admin", "math"],
        "metadata": {"team": "engines"},
    }
    payload.update(overrides)
    return payload


def _created(service: DefaultUserAuthorityService, **overrides: Any) -> User:
    result = service.create_user(user_data=_user_input(**overrides))
    assert isinstance(result, Success)
    return result.data


def _error_fields(result: Failure) -> list[str]:
    assert result.context is not None
    return [item["field"] for item in result.context["errors"]]


def test_create_user_generates_system_fields_and_records_event() -> None:
    """Create should assign id and timestamps from the injected clock."""
    clock = _Clock()
    service = _service(clock)

    result = service.create_user(user_data=_user_input(), source="registration")

    assert isinstance(result, Success)
    user = result.data
    assert is_prefixed_id(user.id, "user")
    assert user.created_at == _START
    assert user.updated_at == _START
    assert user.tags == ("admin", "math")
    assert user.contact.address is not None
    assert user.contact.address.zip_code == "NW1"
    assert result.metadata == {"created": True}

    events = service.list_events()
    assert isinstance(events, Success)
    assert len(events.data) == 1
    created = events.data[0]
    assert isinstance(created, UserCreatedEvent)
    assert created.data.user == user
    assert created.data.source == "registration"
    assert created.data.metadata == {"actor": "api"}


def test_create_user_overrides_caller_supplied_system_fields() -> None:
    """Caller values for id, createdAt and updatedAt should be replaced."""
    service = _service()
    earlier = _START - timedelta(days=30)

    user = _created(service, id="chosen", createdAt=earlier, updatedAt=earlier)

    assert user.id != "chosen"
    assert user.created_at == _START
    assert user.updated_at == _START


def test_create_user_drops_undeclared_keys() -> None:
    """Keys outside the user shape should not be stored."""
    service = _service()

    user = _created(service, nickname="countess")

    assert "nickname" not in user.to_wire()
    assert "nickname" not in service._users[user.id]


def test_create_user_stores_read_only_nested_mappings_as_plain_dicts() -> None:
    """Any mapping accepted by validation should be stored, not rejected as a defect."""
    service = _service()
    address = MappingProxyType(
        {
            "street": "1 Analytical Way",
            "city": "London",
            "state": "Greater London",
            "zipCode": "NW1",
            "country": "UK",
        }
    )

    result = service.create_user(
        user_data=MappingProxyType(
            _user_input(
                contact=MappingProxyType({"email": "ada@example.com", "address": address})
            )
        ),
    )

    assert isinstance(result, Success)
    stored = service._users[result.data.id]
    assert type(stored["contact"]) is dict
    assert type(stored["contact"]["address"]) is dict
    assert result.data.contact.address is not None
    assert result.data.contact.address.city == "London"

    updated = service.update_user(
        user_id=result.data.id,
        changes=MappingProxyType({"contact": MappingProxyType({"email": "ada@lovelace.org"})}),
    )
    assert isinstance(updated, Success)
    assert updated.data.contact.email == "ada@lovelace.org"
    assert type(service._users[result.data.id]["contact"]) is dict


def test_create_user_reports_every_failing_field() -> None:
    """Invalid input should fail with one entry per failing field."""
    service = _service()

    result = service.create_user(
        user_data=_user_input(name="   ", age=-3, isActive="yes"),
    )

    assert isinstance(result, Failure)
    assert result.error.kind == ErrorKind.VALIDATION
    assert result.error.code == codes.INVALID_USER_DATA
    assert result.error.field == "userData"
    assert _error_fields(result) == ["name", "age", "isActive"]
    assert http_status_for(result.error) == 400
    assert service.size == 0
    assert service.event_count == 0


def test_create_user_reports_missing_fields_as_missing() -> None:
    """Absent required fields should never report a type mismatch."""
    service = _service()
    payload = _user_input()
    del payload["name"]

    result = service.create_user(user_data=payload)

    assert isinstance(result, Failure)
    assert result.context is not None
    assert result.context["errors"] == [
        {"field": "name", "message": "Missing or invalid name field", "value": None}
    ]


def test_create_user_nests_contact_errors_under_contact() -> None:
    """Nested shape errors should stay nested with the raw value attached."""
    service = _service()
    contact = {"email": "not-an-email", "phone": "12345"}

    result = service.create_user(user_data=_user_input(contact=contact))

    assert isinstance(result, Failure)
    assert result.context is not None
    (entry,) = result.context["errors"]
    assert entry["field"] == "contact"
    assert entry["value"] == contact
    assert [item["field"] for item in entry["nested"]] == ["email", "phone"]


def test_create_user_reports_failing_tag_indexes() -> None:
    """Tag element failures should be reported by index."""
    service = _service()

    result = service.create_user(user_data=_user_input(tags=["ok", "", 7]))

    assert isinstance(result, Failure)
    assert result.context is not None
    (entry,) = result.context["errors"]
    assert entry["field"] == "tags"
    assert [item["field"] for item in entry["nested"]] == ["tags[1]", "tags[2]"]


def test_create_user_treats_none_optional_fields_as_absent() -> None:
    """Optional fields given as None should pass validation."""
    service = _service()
    contact = {"email": "ada@example.com", "phone": None, "address": None}

    user = _created(service, contact=contact, metadata=None)

    assert user.contact.phone is None
    assert user.contact.address is None
    assert user.metadata is None


def test_create_user_rejects_non_mapping_input() -> None:
    """Non-mapping input should fail at the root."""
    service = _service()

    result = service.create_user(user_data=["not", "a", "user"])

    assert isinstance(result, Failure)
    assert result.error.code == codes.INVALID_USER_DATA
    assert _error_fields(result) == ["root"]


def test_create_user_rejects_unknown_source_and_blank_actor() -> None:
    """Event source and actor should be checked before anything is stored."""
    service = _service()

    bad_source = service.create_user(user_data=_user_input(), source="scraper")
    blank_actor = service.create_user(user_data=_user_input(), actor=" ")

    assert isinstance(bad_source, Failure)
    assert bad_source.error.field == "source"
    assert isinstance(blank_actor, Failure)
    assert blank_actor.error.field == "actor"
    assert service.size == 0


def test_get_user_returns_value_equal_to_created_user() -> None:
    """Reads should return a fresh copy equal to what create returned."""
    service = _service()
    user = _created(service)

    result = service.get_user(user_id=user.id)

    assert isinstance(result, Success)
    assert result.data == user
    assert result.data is not user


def test_mutating_returned_user_does_not_change_stored_user() -> None:
    """Mutable nested values handed to callers should be copies."""
    service = _service()
    user = _created(service)
    assert user.metadata is not None

    user.metadata["team"] = "hijacked"

    stored = service.get_user(user_id=user.id)
    assert isinstance(stored, Success)
    assert stored.data.metadata == {"team": "engines"}


def test_get_user_rejects_blank_and_non_string_ids() -> None:
    """Invalid ids should fail validation before any lookup."""
    service = _service()

    for user_id in ("", "   ", 42, None):
        result = service.get_user(user_id=user_id)
        assert isinstance(result, Failure)
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == codes.INVALID_ID
        assert result.error.field == "id"


def test_get_user_reports_missing_user_as_not_found() -> None:
    """Unknown ids should be a business NOT_FOUND failure."""
    service = _service()

    result = service.get_user(user_id="user_missing")

    assert isinstance(result, Failure)
    assert result.error.kind == ErrorKind.BUSINESS
    assert result.error.code == codes.NOT_FOUND
    assert http_status_for(result.error) == 404


def test_get_user_reports_corrupted_record() -> None:
    """A stored entry that no longer validates should never be returned."""
    service = _service()
    user = _created(service)
    service._users[user.id]["age"] = -1

    result = service.get_user(user_id=user.id)

    assert isinstance(result, Failure)
    assert result.error.code == codes.DATA_CORRUPTION
    assert http_status_for(result.error) == 500


def test_list_users_excludes_corrupted_records_and_reports_them() -> None:
    """Listing should skip corrupt entries and name them in metadata."""
    clock = _Clock()
    service = _service(clock)
    healthy = _created(service, name="Healthy")
    clock.advance()
    broken = _created(service, name="Broken")
    service._users[broken.id]["contact"] = {"email": "nope"}

    result = service.list_users()

    assert isinstance(result, Success)
    assert [user.id for user in result.data.items] == [healthy.id]
    assert result.data.total == 1
    assert result.metadata == {"excluded": [broken.id]}


def test_list_users_pages_concatenate_to_full_listing() -> None:
    """Walking every page should yield each valid user exactly once."""
    clock = _Clock()
    service = _service(clock)
    for index in range(25):
        _created(service, name=f"User {index:02d}", age=20 + index % 3)
        clock.advance()

    full = service.list_users(limit=100, sort_by="age", sort_order="asc")
    assert isinstance(full, Success)

    collected: list[User] = []
    for page in (1, 2, 3):
        result = service.list_users(page=page, limit=10, sort_by="age", sort_order="asc")
        assert isinstance(result, Success)
        assert result.data.pages == 3
        assert result.data.total == 25
        collected.extend(result.data.items)

    assert collected == list(full.data.items)
    assert len({user.id for user in collected}) == 25


def test_list_users_beyond_last_page_is_empty_success() -> None:
    """Pages past the end should succeed with no items."""
    service = _service()
    _created(service)

    result = service.list_users(page=5, limit=10)

    assert isinstance(result, Success)
    assert result.data == Page(items=(), page=5, limit=10, total=1)


def test_list_users_defaults_to_newest_first() -> None:
    """Default ordering should be createdAt descending with the default limit."""
    clock = _Clock()
    service = _service(clock, default_page_limit=2)
    first = _created(service, name="First")
    clock.advance()
    second = _created(service, name="Second")
    clock.advance()
    third = _created(service, name="Third")

    result = service.list_users()

    assert isinstance(result, Success)
    assert [user.id for user in result.data.items] == [third.id, second.id]
    assert result.data.limit == 2
    assert first.id not in {user.id for user in result.data.items}


def test_list_users_sort_is_stable_in_both_directions() -> None:
    """Users with equal sort keys should keep insertion order."""
    service = _service()
    ids = [_created(service, name=name, age=30).id for name in ("A", "B", "C")]
    older = _created(service, name="D", age=50)

    ascending = service.list_users(sort_by="age", sort_order="asc")
    descending = service.list_users(sort_by="age", sort_order="desc")

    assert isinstance(ascending, Success)
    assert isinstance(descending, Success)
    assert [user.id for user in ascending.data.items] == [*ids, older.id]
    assert [user.id for user in descending.data.items] == [older.id, *ids]


def test_list_users_filters_by_active_flag_and_tag() -> None:
    """Optional filters should narrow the matched set and the total."""
    service = _service()
    active_admin = _created(service, tags=["admin"])
    _created(service, isActive=False, tags=["admin"])
    _created(service, tags=["guest"])

    result = service.list_users(is_active=True, tag="admin")

    assert isinstance(result, Success)
    assert [user.id for user in result.data.items] == [active_admin.id]
    assert result.data.total == 1


def test_list_users_rejects_invalid_parameters() -> None:
    """Paging, sorting and filter parameters should map to stable codes."""
    service = _service()
    cases: list[tuple[dict[str, Any], str, str]] = [
        ({"page": 0}, codes.INVALID_PAGINATION, "page"),
        ({"page": "2"}, codes.INVALID_PAGINATION, "page"),
        ({"limit": 0}, codes.INVALID_PAGINATION, "limit"),
        ({"limit": 101}, codes.INVALID_PAGINATION, "limit"),
        ({"limit": True}, codes.INVALID_PAGINATION, "limit"),
        ({"sort_by": "email"}, codes.INVALID_SORT, "sortBy"),
        ({"sort_order": "up"}, codes.INVALID_SORT, "sortOrder"),
        ({"is_active": "yes"}, codes.INVALID_FILTER, "isActive"),
        ({"tag": " "}, codes.INVALID_FILTER, "tag"),
    ]

    for params, code, field_name in cases:
        result = service.list_users(**params)
        assert isinstance(result, Failure), params
        assert result.error.kind == ErrorKind.VALIDATION
        assert result.error.code == code
        assert result.error.field == field_name


def test_update_user_applies_changes_and_preserves_identity() -> None:
    """Update should merge changes but never move id or createdAt."""
    clock = _Clock()
    service = _service(clock)
    user = _created(service)
    clock.advance(60)

    result = service.update_user(
        user_id=user.id,
        changes={"name": "Countess Lovelace", "id": "other", "createdAt": clock.now},
        actor="admin-1",
    )

    assert isinstance(result, Success)
    updated = result.data
    assert updated.id == user.id
    assert updated.name == "Countess Lovelace"
    assert updated.created_at == user.created_at
    assert updated.updated_at == clock.now
    assert result.metadata == {"updated": True}

    events = service.list_events(kind=EventKind.UPDATED)
    assert isinstance(events, Success)
    (event,) = events.data
    assert isinstance(event, UserUpdatedEvent)
    assert event.data.user_id == user.id
    assert event.data.changes == {"name": "Countess Lovelace"}
    assert event.data.previous_values["name"] == user.name
    assert event.data.previous_values["createdAt"] == user.created_at
    assert event.data.updated_by == "admin-1"


def test_update_user_never_moves_updated_at_before_created_at() -> None:
    """A clock running backwards should not produce an earlier updatedAt."""
    clock = _Clock()
    service = _service(clock)
    user = _created(service)
    clock.advance(-3600)

    result = service.update_user(user_id=user.id, changes={"age": 37})

    assert isinstance(result, Success)
    assert result.data.updated_at == user.created_at


def test_update_user_rejects_invalid_merged_data_and_keeps_store() -> None:
    """A merge that fails validation should leave stored state untouched."""
    service = _service()
    user = _created(service)

    result = service.update_user(user_id=user.id, changes={"age": 0, "tags": "admin"})

    assert isinstance(result, Failure)
    assert result.error.code == codes.INVALID_UPDATED_DATA
    assert _error_fields(result) == ["age", "tags"]
    stored = service.get_user(user_id=user.id)
    assert isinstance(stored, Success)
    assert stored.data == user
    assert service.event_count == 1


def test_update_user_requires_mapping_with_updatable_field() -> None:
    """Empty, foreign-only or non-mapping changes should be rejected."""
    service = _service()
    user = _created(service)

    for changes in ({}, {"id": "x", "unknown": 1}, ["name"]):
        result = service.update_user(user_id=user.id, changes=changes)
        assert isinstance(result, Failure)
        assert result.error.code == codes.INVALID_UPDATES
        assert result.error.field == "updates"


def test_update_user_propagates_not_found() -> None:
    """Updating an unknown id should fail without recording an event."""
    service = _service()

    result = service.update_user(user_id="user_missing", changes={"age": 40})

    assert isinstance(result, Failure)
    assert result.error.code == codes.NOT_FOUND
    assert service.event_count == 0


def test_delete_user_removes_user_and_keeps_backup() -> None:
    """Delete should confirm removal and put a backup in the audit trail."""
    service = _service()
    user = _created(service)

    result = service.delete_user(user_id=user.id, actor="admin-2", reason="requested")

    assert isinstance(result, Success)
    assert result.data == DeleteConfirmation(
        id=user.id, message=f"User {user.id} deleted successfully"
    )
    missing = service.get_user(user_id=user.id)
    assert isinstance(missing, Failure)
    assert missing.error.code == codes.NOT_FOUND

    events = service.list_events(kind="deleted")
    assert isinstance(events, Success)
    (event,) = events.data
    assert isinstance(event, UserDeletedEvent)
    assert event.data.backup == user
    assert event.data.deleted_by == "admin-2"
    assert event.data.reason == "requested"


def test_delete_user_missing_leaves_store_and_audit_unchanged() -> None:
    """Deleting an unknown id should change nothing."""
    service = _service()
    _created(service)

    result = service.delete_user(user_id="user_missing")

    assert isinstance(result, Failure)
    assert result.error.code == codes.NOT_FOUND
    assert service.size == 1
    assert service.event_count == 1


def test_list_events_orders_newest_first_and_filters_by_kind() -> None:
    """Events should come back newest first, optionally of one kind."""
    clock = _Clock()
    service = _service(clock)
    user = _created(service)
    clock.advance()
    service.update_user(user_id=user.id, changes={"age": 40})
    clock.advance()
    service.record_login_attempt(
        user_id=user.id, ip="10.0.0.1", user_agent="pytest", successful=True
    )

    everything = service.list_events()
    created_only = service.list_events(kind="created")

    assert isinstance(everything, Success)
    assert [event.type for event in everything.data] == [
        "login-attempt",
        "updated",
        "created",
    ]
    assert isinstance(created_only, Success)
    assert [event.type for event in created_only.data] == ["created"]


def test_list_events_orders_equal_timestamps_by_append_position() -> None:
    """Events sharing a timestamp should list the latest append first."""
    service = _service()
    first = _created(service, name="First")
    second = _created(service, name="Second")

    result = service.list_events()

    assert isinstance(result, Success)
    subjects = [event.data.user.id for event in result.data]
    assert subjects == [second.id, first.id]


def test_list_events_rejects_unknown_kind() -> None:
    """Unknown event kinds should be a validation failure."""
    service = _service()

    result = service.list_events(kind="renamed")

    assert isinstance(result, Failure)
    assert result.error.code == codes.INVALID_EVENT_TYPE
    assert result.error.field == "type"


def test_list_events_excludes_invalid_retained_events() -> None:
    """A retained event that fails validation should be skipped and reported."""
    service = _service()
    _created(service)
    _created(service)
    list(service._events)[0]["type"] = "renamed"

    result = service.list_events()

    assert isinstance(result, Success)
    assert len(result.data) == 1
    assert result.metadata == {"excluded": [0]}


def test_audit_log_keeps_only_most_recent_events() -> None:
    """The audit log should drop the oldest events beyond capacity."""
    service = _service(event_capacity=3)
    users = [_created(service, name=f"User {index}") for index in range(5)]

    result = service.list_events()

    assert isinstance(result, Success)
    assert service.event_count == 3
    assert [event.data.user.id for event in result.data] == [
        users[4].id,
        users[3].id,
        users[2].id,
    ]


def test_record_login_attempt_appends_event() -> None:
    """Login attempts should be recorded for known and unknown users."""
    service = _service()

    result = service.record_login_attempt(
        user_id="user_unknown",
        ip="192.0.2.10",
        user_agent="curl/8.0",
        successful=False,
        failure_reason="bad password",
    )

    assert isinstance(result, Success)
    assert isinstance(result.data, LoginAttemptEvent)
    assert result.data.data.failure_reason == "bad password"
    assert service.event_count == 1


def test_record_login_attempt_rejects_invalid_payload() -> None:
    """Invalid login attempts should report each failing field."""
    service = _service()

    result = service.record_login_attempt(
        user_id="", ip="192.0.2.10", user_agent=None, successful="no"
    )

    assert isinstance(result, Failure)
    assert result.error.code == codes.INVALID_LOGIN_ATTEMPT
    assert _error_fields(result) == ["userId", "userAgent", "successful"]
    assert service.event_count == 0


def test_open_feed_receives_new_events_newest_first_up_to_capacity() -> None:
    """Feeds should see only later events and keep the newest ones."""
    clock = _Clock()
    service = _service(clock)
    _created(service, name="Before")
    feed = service.open_feed(capacity=2)

    for name in ("One", "Two", "Three"):
        clock.advance()
        _created(service, name=name)

    names = [event.data.user.name for event in feed.events()]
    assert names == ["Three", "Two"]

    feed.close()
    _created(service, name="After")
    assert len(feed) == 2


def test_open_feed_uses_configured_default_capacity() -> None:
    """Feeds opened without a capacity should use the configured one."""
    service = _service(feed_capacity=7)

    with service.open_feed() as feed:
        assert feed.capacity == 7
    assert feed.closed


def test_teardown_closes_store_and_initialize_reopens_empty() -> None:
    """A torn down store should refuse work until initialized again."""
    service = _service()
    user = _created(service)
    feed = service.open_feed()

    service.teardown()

    closed = service.get_user(user_id=user.id)
    assert isinstance(closed, Failure)
    assert closed.error.code == codes.STORE_UNAVAILABLE
    assert feed.closed

    service.initialize()
    reopened = service.get_user(user_id=user.id)
    assert isinstance(reopened, Failure)
    assert reopened.error.code == codes.NOT_FOUND
    assert service.event_count == 0


def test_naive_clock_is_reported_as_internal_error() -> None:
    """A defect behind the boundary should surface as INTERNAL_ERROR."""
    service = DefaultUserAuthorityService(
        settings=UserAuthoritySettings(),
        clock=lambda: datetime(2024, 1, 1, 12, 0),
    )

    result = service.create_user(user_data=_user_input())

    assert isinstance(result, Failure)
    assert result.error.kind == ErrorKind.BUSINESS
    assert result.error.code == codes.INTERNAL_ERROR
    assert result.context == {"operation": "create_user"}
    assert service.size == 0


def test_concurrent_creates_are_all_stored() -> None:
    """Parallel creates should each store one user with a distinct id."""
    service = DefaultUserAuthorityService(settings=UserAuthoritySettings())
    ids: list[str] = []
    ids_lock = threading.Lock()

    def worker(index: int) -> None:
        result = service.create_user(user_data=_user_input(name=f"Worker {index}"))
        assert isinstance(result, Success)
        with ids_lock:
            ids.append(result.data.id)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(20)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(set(ids)) == 20
    assert service.size == 20
    assert service.event_count == 20


def test_wire_form_uses_camel_case_and_iso_timestamps() -> None:
    """Serialized results should match the camelCase input contract."""
    service = _service()
    user = _created(service)

    single = to_wire(service.get_user(user_id=user.id))
    listing = to_wire(service.list_users())

    assert single["success"] is True
    assert single["data"]["isActive"] is True
    assert datetime.fromisoformat(single["data"]["createdAt"]) == _START
    assert single["data"]["contact"]["address"]["zipCode"] == "NW1"
    assert listing["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}
    assert listing["data"][0]["id"] == user.id


def test_malformed_store_event_is_internal_error_and_changes_nothing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A broken event builder should fail the call without partial writes."""
    service = _service()
    feed = service.open_feed()

    def broken_event(kind: EventKind, *, timestamp: datetime, data: Any) -> dict[str, Any]:
        return {"type": kind.value, "timestamp": timestamp, "data": {}}

    monkeypatch.setattr(implementation, "build_event", broken_event)

    result = service.create_user(user_data=_user_input())

    assert isinstance(result, Failure)
    assert result.error.code == codes.INTERNAL_ERROR
    assert service.size == 0
    assert service.event_count == 0
    assert len(feed) == 0
