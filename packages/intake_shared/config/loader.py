"""Settings loading with deterministic precedence.

The cascade is always:
1) explicit overrides passed to ``load_settings``
2) environment variables (``INTAKE_`` prefix, ``__`` nesting)
3) the YAML config file
4) model defaults

Example: ``INTAKE_COMPONENTS__SERVICE__USER_AUTHORITY__EVENT_CAPACITY=20``
sets ``components.service.user_authority.event_capacity``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar

from .models import DEFAULT_CONFIG_PATH, IntakeSettings


def load_settings(
    *,
    config_path: str | Path | None = None,
    **overrides: Any,
) -> IntakeSettings:
    """Build root settings, reading YAML from ``config_path`` when given."""
    resolved = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    return _settings_type(resolved)(**overrides)


def _settings_type(config_path: Path) -> type[IntakeSettings]:
    """Return a settings subclass bound to one YAML file path."""
    if config_path == IntakeSettings._config_path:
        return IntakeSettings

    class _FileBoundSettings(IntakeSettings):
        _config_path: ClassVar[Path] = config_path

    return _FileBoundSettings
