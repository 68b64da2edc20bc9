"""Prefixed ULID identifiers for stored entities.

Identifiers look like ``user_01J9Z3K8Q4W7C2M5N6P8R0S1T2``: a lowercase
prefix, an underscore and a canonical 26-character Crockford Base32 ULID.
The 48-bit millisecond timestamp comes first, so ids generated later sort
after ids generated earlier within one process.
"""

from __future__ import annotations

import re
import secrets
import time

_ULID_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
_ULID_LENGTH = 26
_PREFIX_PATTERN = re.compile(r"^[a-z][a-z0-9]*$")


def new_ulid(*, timestamp_ms: int | None = None) -> str:
    """Generate one canonical ULID string from time plus 80 random bits."""
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    if ts_ms < 0 or ts_ms >= (1 << 48):
        raise ValueError("timestamp_ms out of ULID 48-bit range")

    number = (ts_ms << 80) | secrets.randbits(80)
    chars: list[str] = []
    for _ in range(_ULID_LENGTH):
        number, remainder = divmod(number, 32)
        chars.append(_ULID_ALPHABET[remainder])
    return "".join(reversed(chars))


def new_prefixed_id(prefix: str, *, timestamp_ms: int | None = None) -> str:
    """Generate ``<prefix>_<ULID>``."""
    if _PREFIX_PATTERN.match(prefix) is None:
        raise ValueError(f"id prefix must be lowercase alphanumeric: {prefix!r}")
    return f"{prefix}_{new_ulid(timestamp_ms=timestamp_ms)}"


def is_prefixed_id(value: object, prefix: str) -> bool:
    """Return ``True`` for strings shaped like ``new_prefixed_id(prefix)``."""
    if not isinstance(value, str):
        return False
    head, separator, tail = value.partition("_")
    if head != prefix or not separator or len(tail) != _ULID_LENGTH:
        return False
    return all(char in _ULID_ALPHABET for char in tail)
