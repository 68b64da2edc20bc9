"""Narrowed domain models returned by the User Authority Service.

Models are frozen and built from fresh deep copies of validated wire records,
so mutating a returned value never reaches stored state. Attribute names are
snake_case; aliases keep the camelCase wire keys.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def plain_copy(value: object) -> Any:
    """Deep-copy ``value`` with every mapping rebuilt as a plain ``dict``.

    Validation accepts any mapping for nested records, including read-only
    views that cannot be deep-copied directly.
    """
    if isinstance(value, Mapping):
        return {key: plain_copy(item) for key, item in value.items()}
    if isinstance(value, list):
        return [plain_copy(item) for item in value]
    if isinstance(value, tuple):
        return tuple(plain_copy(item) for item in value)
    return copy.deepcopy(value)


class WireModel(BaseModel):
    """Base for models that round-trip through camelCase wire mappings."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @classmethod
    def from_wire(cls, record: Mapping[str, Any]):
        """Narrow an already-validated wire mapping into this model."""
        return cls.model_validate(plain_copy(record))

    def to_wire(self) -> dict[str, Any]:
        """Return a fresh deep-copied wire mapping for this model."""
        return copy.deepcopy(self.model_dump(mode="python", by_alias=True))


class Address(WireModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class ContactInfo(WireModel):
    email: str
    phone: str | None = None
    address: Address | None = None


class User(WireModel):
    """One fully validated stored user."""

    id: str
    name: str
    contact: ContactInfo
    age: int
    is_active: bool
    tags: tuple[str, ...]
    metadata: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class DeleteConfirmation(WireModel):
    """Confirmation returned after a user is removed."""

    id: str
    message: str
