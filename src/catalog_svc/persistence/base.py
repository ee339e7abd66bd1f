"""Record persistence interface consumed by the record store."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..catalog.types import CatalogItem


class RecordPersistence(ABC):
    """
    Durable backing for the record store.

    Each call must apply fully or not at all. Implementations raise
    CollaboratorUnavailableError when the underlying storage fails.
    """

    @abstractmethod
    def put(self, item_id: str, item: CatalogItem) -> None:
        """Insert or replace an item."""

    @abstractmethod
    def get(self, item_id: str) -> CatalogItem | None:
        """Fetch a live item, or None."""

    @abstractmethod
    def delete(self, item_id: str) -> None:
        """Remove an item and retire its id."""

    @abstractmethod
    def query_all(self) -> list[CatalogItem]:
        """Return every live item."""

    def retired_ids(self) -> set[str]:
        """Ids deleted in earlier runs, so they are never reissued."""
        return set()

    def close(self) -> None:
        """Release any held resources."""
