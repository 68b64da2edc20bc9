"""Paginated collection payload shared by list-style operations."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a sorted collection plus the size of the full set."""

    items: tuple[T, ...]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        """Return the number of pages needed to cover ``total`` items."""
        return math.ceil(self.total / self.limit)

    def pagination(self) -> dict[str, Any]:
        """Return the wire ``pagination`` block."""
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "pages": self.pages,
        }
