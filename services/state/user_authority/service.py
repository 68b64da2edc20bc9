"""Authoritative in-process Python API for User Authority Service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from packages.intake_shared.config import IntakeSettings
from packages.intake_shared.result import Page, Result
from services.state.user_authority.audit import EventFeed
from services.state.user_authority.domain import DeleteConfirmation, User
from services.state.user_authority.events import AuditEvent, EventKind, LoginAttemptEvent


class UserAuthorityService(ABC):
    """Public API for validated user records and their audit trail."""

    @abstractmethod
    def initialize(self) -> None:
        """Open the store with empty state; calling it on an open store is a no-op."""

    @abstractmethod
    def teardown(self) -> None:
        """Close the store, discarding users, audit entries and open feeds."""

    @abstractmethod
    def create_user(
        self,
        *,
        user_data: object,
        actor: str | None = None,
        source: str | None = None,
    ) -> Result[User]:
        """Validate and store one new user with generated system fields."""

    @abstractmethod
    def get_user(self, *, user_id: object) -> Result[User]:
        """Return one stored user after re-validating it."""

    @abstractmethod
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
        """Return one sorted page of valid stored users."""

    @abstractmethod
    def update_user(
        self,
        *,
        user_id: object,
        changes: object,
        actor: str | None = None,
    ) -> Result[User]:
        """Apply a partial update and re-validate the merged user."""

    @abstractmethod
    def delete_user(
        self,
        *,
        user_id: object,
        actor: str | None = None,
        reason: str | None = None,
    ) -> Result[DeleteConfirmation]:
        """Remove one user, keeping a backup copy in the audit trail."""

    @abstractmethod
    def list_events(
        self,
        *,
        kind: EventKind | str | None = None,
    ) -> Result[tuple[AuditEvent, ...]]:
        """Return valid retained audit events, newest first."""

    @abstractmethod
    def record_login_attempt(
        self,
        *,
        user_id: object,
        ip: object,
        user_agent: object,
        successful: object,
        failure_reason: object = None,
    ) -> Result[LoginAttemptEvent]:
        """Append one login attempt to the audit trail."""

    @abstractmethod
    def open_feed(self, *, capacity: int | None = None) -> EventFeed:
        """Open a live feed receiving audit events appended from now on."""


def build_user_authority_service(
    *,
    settings: IntakeSettings,
    clock: Callable[[], datetime] | None = None,
) -> UserAuthorityService:
    """Build default User Authority implementation from typed settings."""
    from services.state.user_authority.config import resolve_user_authority_settings
    from services.state.user_authority.implementation import (
        DefaultUserAuthorityService,
    )

    service_settings = resolve_user_authority_settings(settings)
    return DefaultUserAuthorityService(settings=service_settings, clock=clock)
