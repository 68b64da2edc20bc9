"""Component declaration for User Authority Service."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from packages.intake_shared.config import IntakeSettings

SERVICE_COMPONENT_ID = "service_user_authority"


def build_component(
    *,
    settings: IntakeSettings,
    clock: Callable[[], datetime] | None = None,
) -> object:
    """Build the concrete runtime instance for this service component."""
    from services.state.user_authority.service import build_user_authority_service

    return build_user_authority_service(settings=settings, clock=clock)
