"""Catalog types - catalog items, validation rules, and audit entries."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

from ..errors import InvalidFieldError

# First public film screening; anything earlier is not a plausible year
MIN_YEAR = 1888

# Fields a patch may touch. `id` is immutable, asset_ref has its own rules.
EDITABLE_FIELDS = frozenset({"title", "genre", "year", "asset_ref"})

_ID_PARTS = re.compile(r"(\d+)")


def max_year() -> int:
    """Latest accepted publication year (next year, for announced releases)."""
    return datetime.now(timezone.utc).year + 1


@dataclass(frozen=True, slots=True)
class CatalogItem:
    """
    One cataloged movie.

    Instances are immutable; the record store swaps whole items on update,
    so a snapshot handed to readers can never change underneath them.
    """
    id: str
    title: str
    genre: str
    year: int
    asset_ref: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "genre": self.genre,
            "year": self.year,
            "asset_ref": self.asset_ref,
        }


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """A single mutation recorded by the record store."""
    timestamp: str          # ISO format
    item_id: str
    action: str             # created | updated | deleted | asset_linked | asset_replaced
    actor: str = "system"
    old_value: str | None = None
    new_value: str | None = None


def id_sort_key(item_id: str) -> tuple:
    """
    Natural sort key for ids, so generated ids order as m1, m2, ..., m10.

    Digit runs compare numerically, everything else compares as text.
    """
    parts = _ID_PARTS.split(item_id)
    return tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in parts if p != "")


def validate_fields(item: CatalogItem, operation: str) -> None:
    """Check title, genre and year invariants, raising InvalidFieldError."""
    if not isinstance(item.title, str) or not item.title.strip():
        raise InvalidFieldError(
            "title must be non-empty text", operation=operation, key=item.id or None, field="title",
        )
    if not isinstance(item.genre, str) or not item.genre.strip():
        raise InvalidFieldError(
            "genre must be non-empty text", operation=operation, key=item.id or None, field="genre",
        )
    # bool is an int subclass; True is not a year
    if isinstance(item.year, bool) or not isinstance(item.year, int):
        raise InvalidFieldError(
            f"year must be an integer, got {item.year!r}", operation=operation, key=item.id or None, field="year",
        )
    upper = max_year()
    if not MIN_YEAR <= item.year <= upper:
        raise InvalidFieldError(
            f"year {item.year} outside [{MIN_YEAR}, {upper}]",
            operation=operation, key=item.id or None, field="year",
        )
    if item.asset_ref is not None and (not isinstance(item.asset_ref, str) or not item.asset_ref):
        raise InvalidFieldError(
            "asset_ref must be a non-empty key", operation=operation, key=item.id or None, field="asset_ref",
        )
