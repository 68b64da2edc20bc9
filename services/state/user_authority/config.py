"""Pydantic settings for User Authority Service behavior."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from packages.intake_shared.config import IntakeSettings, resolve_component_settings
from services.state.user_authority.component import SERVICE_COMPONENT_ID

UserSource = Literal["registration", "admin", "import"]


class UserAuthoritySettings(BaseModel):
    """User Authority Service runtime behavior settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    event_capacity: int = Field(default=100, gt=0)
    feed_capacity: int = Field(default=50, gt=0)
    default_page_limit: int = Field(default=10, gt=0)
    max_page_limit: int = Field(default=100, gt=0, le=100)
    id_prefix: str = "user"
    default_actor: str = "api"
    default_source: UserSource = "admin"

    @field_validator("id_prefix", "default_actor", mode="before")
    @classmethod
    def _validate_text(cls, value: object) -> object:
        """Reject blank identifier prefixes and actor names."""
        if isinstance(value, str):
            normalized = value.strip()
            if normalized == "":
                raise ValueError("value must be non-empty")
            return normalized
        return value

    @model_validator(mode="after")
    def _validate_page_limits(self) -> "UserAuthoritySettings":
        """Keep the default page size inside the accepted range."""
        if self.default_page_limit > self.max_page_limit:
            raise ValueError("default_page_limit must not exceed max_page_limit")
        return self


def resolve_user_authority_settings(
    settings: IntakeSettings,
) -> UserAuthoritySettings:
    """Resolve store settings from ``components.service.user_authority``."""
    return resolve_component_settings(
        settings=settings,
        component_id=SERVICE_COMPONENT_ID,
        model=UserAuthoritySettings,
    )
