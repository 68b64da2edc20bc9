"""User Authority Service native package exports."""

from packages.intake_shared.result import Failure, Page, Result, Success
from services.state.user_authority.audit import EventFeed
from services.state.user_authority.component import SERVICE_COMPONENT_ID
from services.state.user_authority.config import UserAuthoritySettings
from services.state.user_authority.domain import (
    Address,
    ContactInfo,
    DeleteConfirmation,
    User,
)
from services.state.user_authority.events import (
    AuditEvent,
    EventKind,
    LoginAttemptEvent,
    UserCreatedEvent,
    UserDeletedEvent,
    UserUpdatedEvent,
)
from services.state.user_authority.implementation import DefaultUserAuthorityService
from services.state.user_authority.roles import (
    AdminUser,
    AnyUser,
    RegularUser,
    access_summary,
    narrow_role_user,
    validate_role_user,
)
from services.state.user_authority.service import (
    UserAuthorityService,
    build_user_authority_service,
)

__all__ = [
    "SERVICE_COMPONENT_ID",
    "UserAuthorityService",
    "UserAuthoritySettings",
    "DefaultUserAuthorityService",
    "build_user_authority_service",
    "Address",
    "ContactInfo",
    "User",
    "DeleteConfirmation",
    "AdminUser",
    "RegularUser",
    "AnyUser",
    "validate_role_user",
    "narrow_role_user",
    "access_summary",
    "AuditEvent",
    "EventKind",
    "UserCreatedEvent",
    "UserUpdatedEvent",
    "UserDeletedEvent",
    "LoginAttemptEvent",
    "EventFeed",
    "Result",
    "Success",
    "Failure",
    "Page",
]
