"""Identifier generation helpers."""

from packages.intake_shared.ids.ulid import is_prefixed_id, new_prefixed_id, new_ulid

__all__ = [
    "is_prefixed_id",
    "new_prefixed_id",
    "new_ulid",
]
