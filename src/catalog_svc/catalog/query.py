"""Query engine - read-only predicate evaluation over record store snapshots."""

from __future__ import annotations

from typing import Callable

from .store import RecordStore
from .types import CatalogItem

Predicate = Callable[[CatalogItem], bool]


# =============================================================================
# Predicate builders
# =============================================================================

def genre_equals(genre: str, case_sensitive: bool = True) -> Predicate:
    """Exact genre match; case-insensitive only when asked for."""
    if case_sensitive:
        return lambda item: item.genre == genre
    folded = genre.casefold()
    return lambda item: item.genre.casefold() == folded


def year_between(lo: int | None = None, hi: int | None = None) -> Predicate:
    """Inclusive year range; either bound may be open."""
    def predicate(item: CatalogItem) -> bool:
        if lo is not None and item.year < lo:
            return False
        if hi is not None and item.year > hi:
            return False
        return True
    return predicate


def title_contains(text: str) -> Predicate:
    """Case-insensitive title substring match."""
    needle = text.casefold()
    return lambda item: needle in item.title.casefold()


def has_asset(flag: bool = True) -> Predicate:
    return lambda item: (item.asset_ref is not None) is flag


def all_of(*predicates: Predicate) -> Predicate:
    """Combine predicates; an empty combination matches everything."""
    return lambda item: all(p(item) for p in predicates)


# =============================================================================
# Engine
# =============================================================================

class QueryEngine:
    """
    Evaluates predicates against the record store's current snapshot.

    Never mutates the store. Results are always ordered by ascending id,
    because the snapshot is, and filtering preserves order.
    """

    def __init__(self, store: RecordStore, genre_case_sensitive: bool = True) -> None:
        self._store = store
        self.genre_case_sensitive = genre_case_sensitive

    def filter(self, predicate: Predicate) -> list[CatalogItem]:
        """Items matching an arbitrary pure predicate."""
        return [item for item in self._store.snapshot() if predicate(item)]

    def filter_by_genre(self, genre: str) -> list[CatalogItem]:
        """Items whose genre matches exactly. Empty list when nothing matches."""
        return self.filter(genre_equals(genre, case_sensitive=self.genre_case_sensitive))

    def list_all(self) -> list[CatalogItem]:
        return list(self._store.snapshot())

    def search(
        self,
        genre: str | None = None,
        year_from: int | None = None,
        year_to: int | None = None,
        title: str | None = None,
        with_asset: bool | None = None,
    ) -> list[CatalogItem]:
        """Combine the optional listing criteria the HTTP layer exposes."""
        predicates: list[Predicate] = []
        if genre is not None:
            predicates.append(genre_equals(genre, case_sensitive=self.genre_case_sensitive))
        if year_from is not None or year_to is not None:
            predicates.append(year_between(year_from, year_to))
        if title:
            predicates.append(title_contains(title))
        if with_asset is not None:
            predicates.append(has_asset(with_asset))
        if not predicates:
            return self.list_all()
        return self.filter(all_of(*predicates))
