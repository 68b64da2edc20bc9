"""Public API for Intake configuration."""

from .loader import load_settings
from .models import (
    DEFAULT_CONFIG_PATH,
    ComponentsSettings,
    IntakeSettings,
    LoggingSettings,
    resolve_component_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ComponentsSettings",
    "IntakeSettings",
    "LoggingSettings",
    "load_settings",
    "resolve_component_settings",
]
