"""Bounded audit log and live event feeds for the user store."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Iterator, Mapping
from typing import Any

from services.state.user_authority.events import AuditEvent


class AuditLog:
    """Append-only event log keeping only the most recent ``capacity`` entries.

    Entries are stored as wire envelopes. Once ``capacity`` is exceeded the
    oldest entries are dropped first.
    """

    def __init__(self, *, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("audit log capacity must be positive")
        self._entries: deque[dict[str, Any]] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        assert self._entries.maxlen is not None
        return self._entries.maxlen

    def append(self, record: Mapping[str, Any]) -> None:
        self._entries.append(dict(record))

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class EventFeed:
    """Session-scoped view of audit events published after it was opened.

    The feed keeps at most ``capacity`` events and lists them newest first.
    A closed feed ignores further events.
    """

    def __init__(self, *, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("event feed capacity must be positive")
        self._capacity = capacity
        self._events: deque[AuditEvent] = deque(maxlen=capacity)
        self._closed = False
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: AuditEvent) -> None:
        """Receive one narrowed event from the store."""
        with self._lock:
            if self._closed:
                return
            self._events.appendleft(event)

    def events(self) -> tuple[AuditEvent, ...]:
        """Return buffered events, newest first."""
        with self._lock:
            return tuple(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def __enter__(self) -> "EventFeed":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
