"""Record store - thread-safe owner of every catalog item."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Iterable

from ..errors import AlreadyLinkedError, DuplicateIdError, InvalidFieldError, NotFoundError
from .types import EDITABLE_FIELDS, AuditEntry, CatalogItem, id_sort_key, validate_fields

if TYPE_CHECKING:
    from ..persistence.base import RecordPersistence

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Thread-safe, uniquely keyed store of catalog items.

    Supports:
    - Atomic create / update / delete (validate, persist, then swap)
    - Id assignment that never reissues a deleted id
    - Genre index for per-genre counts
    - Immutable, id-ordered snapshots for the query engine
    - Optional durable backend (writes go to the backend before memory)
    """

    def __init__(
        self,
        persistence: RecordPersistence | None = None,
        id_prefix: str = "m",
    ) -> None:
        self._items: dict[str, CatalogItem] = {}
        self._genre_index: dict[str, set[str]] = {}  # genre -> ids
        self._retired: set[str] = set()
        self._audit_log: list[AuditEntry] = []
        self._lock = threading.RLock()
        self._counter = 0
        self._id_prefix = id_prefix
        self._persistence = persistence

        if persistence is not None:
            self._load_from(persistence)

    def _load_from(self, persistence: RecordPersistence) -> None:
        """Populate memory from the durable backend on startup."""
        items = persistence.query_all()
        retired = persistence.retired_ids()
        with self._lock:
            for item in items:
                self._index_add(item)
                self._items[item.id] = item
            self._retired |= retired
            for item_id in list(self._items) + list(retired):
                self._bump_counter(item_id)
        logger.info(f"Loaded {len(items)} items ({len(retired)} retired ids) from persistence")

    # =========================================================================
    # Id handling
    # =========================================================================

    def _bump_counter(self, item_id: str) -> None:
        """Keep the counter ahead of any id that looks generated."""
        suffix = item_id[len(self._id_prefix):] if item_id.startswith(self._id_prefix) else ""
        if suffix.isdigit():
            self._counter = max(self._counter, int(suffix))

    def _next_id(self) -> str:
        while True:
            self._counter += 1
            candidate = f"{self._id_prefix}{self._counter}"
            if candidate not in self._items and candidate not in self._retired:
                return candidate

    # =========================================================================
    # Index maintenance
    # =========================================================================

    def _index_add(self, item: CatalogItem) -> None:
        self._genre_index.setdefault(item.genre, set()).add(item.id)

    def _index_remove(self, item: CatalogItem) -> None:
        ids = self._genre_index.get(item.genre)
        if ids is None:
            return
        ids.discard(item.id)
        if not ids:
            del self._genre_index[item.genre]

    def _audit(self, item_id: str, action: str, actor: str, old: str | None = None, new: str | None = None) -> None:
        self._audit_log.append(AuditEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            item_id=item_id,
            action=action,
            actor=actor,
            old_value=old,
            new_value=new,
        ))

    def _require(self, item_id: str, operation: str) -> CatalogItem:
        item = self._items.get(item_id)
        if item is None:
            raise NotFoundError(f"Catalog item not found: {item_id}", operation=operation, key=item_id)
        return item

    # =========================================================================
    # Operations
    # =========================================================================

    def create(
        self,
        title: str,
        genre: str,
        year: int,
        item_id: str | None = None,
        asset_ref: str | None = None,
        actor: str = "system",
    ) -> CatalogItem:
        """
        Create a new item and return it (with its assigned id).

        Raises:
            DuplicateIdError: If item_id is live or was retired by a delete
            InvalidFieldError: If any field violates an item invariant
            CollaboratorUnavailableError: If the persistence backend fails
        """
        with self._lock:
            if item_id is not None:
                if not isinstance(item_id, str) or not item_id.strip():
                    raise InvalidFieldError("id must be non-empty text", operation="create", field="id")
                if item_id in self._items or item_id in self._retired:
                    raise DuplicateIdError(f"Catalog item id already used: {item_id}", operation="create", key=item_id)

            # Validate before spending an id
            candidate = CatalogItem(id=item_id or "", title=title, genre=genre, year=year, asset_ref=asset_ref)
            validate_fields(candidate, "create")

            new_id = item_id if item_id is not None else self._next_id()
            item = replace(candidate, id=new_id)

            if self._persistence is not None:
                self._persistence.put(new_id, item)

            self._items[new_id] = item
            self._index_add(item)
            self._bump_counter(new_id)
            self._audit(new_id, "created", actor, new=item.title)
            logger.info(f"Catalog item created: {new_id} ({item.title}, {item.year})")
            return item

    def get(self, item_id: str) -> CatalogItem:
        """Get an item by id, raising NotFoundError if absent."""
        with self._lock:
            return self._require(item_id, "get")

    def exists(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._items

    def update(self, item_id: str, patch: dict[str, Any], actor: str = "system") -> CatalogItem:
        """
        Apply a partial change to an item.

        The patched item is validated as a whole and swapped in only if
        valid, so readers never see a half-applied update.

        Raises:
            NotFoundError: If the item does not exist
            InvalidFieldError: On unknown/immutable fields or invalid values
            AlreadyLinkedError: If asset_ref is set while one is already present
            CollaboratorUnavailableError: If the persistence backend fails
        """
        with self._lock:
            current = self._require(item_id, "update")

            unknown = set(patch) - EDITABLE_FIELDS
            if unknown:
                name = sorted(unknown)[0]
                detail = "id is immutable" if name == "id" else f"unknown field: {name}"
                raise InvalidFieldError(detail, operation="update", key=item_id, field=name)

            if "asset_ref" in patch and current.asset_ref is not None and patch["asset_ref"] != current.asset_ref:
                raise AlreadyLinkedError(
                    f"Item {item_id} already linked to {current.asset_ref}; use replace",
                    operation="update", key=item_id,
                )

            updated = replace(current, **patch)
            validate_fields(updated, "update")
            if updated == current:
                return current

            self._commit(current, updated)
            action = "asset_linked" if updated.asset_ref != current.asset_ref else "updated"
            self._audit(item_id, action, actor, old=_describe(current), new=_describe(updated))
            logger.info(f"Catalog item {action}: {item_id} fields={sorted(patch)}")
            return updated

    def replace_asset(self, item_id: str, asset_ref: str, actor: str = "system") -> CatalogItem:
        """Explicitly re-associate an item with a different asset key."""
        with self._lock:
            current = self._require(item_id, "replace_asset")
            updated = replace(current, asset_ref=asset_ref)
            validate_fields(updated, "replace_asset")
            if updated == current:
                return current

            self._commit(current, updated)
            self._audit(item_id, "asset_replaced", actor, old=current.asset_ref, new=asset_ref)
            logger.info(f"Catalog item {item_id} asset replaced: {current.asset_ref} -> {asset_ref}")
            return updated

    def _commit(self, current: CatalogItem, updated: CatalogItem) -> None:
        if self._persistence is not None:
            self._persistence.put(updated.id, updated)
        self._index_remove(current)
        self._items[updated.id] = updated
        self._index_add(updated)

    def delete(self, item_id: str, actor: str = "system") -> CatalogItem:
        """Delete an item and retire its id. Returns the removed item."""
        with self._lock:
            current = self._require(item_id, "delete")
            if self._persistence is not None:
                self._persistence.delete(item_id)

            del self._items[item_id]
            self._index_remove(current)
            self._retired.add(item_id)
            self._audit(item_id, "deleted", actor, old=current.title)
            logger.info(f"Catalog item deleted: {item_id}")
            return current

    def snapshot(self) -> tuple[CatalogItem, ...]:
        """Point-in-time view of all items, ordered by id."""
        with self._lock:
            items = list(self._items.values())
        return tuple(sorted(items, key=lambda i: id_sort_key(i.id)))

    def genre_counts(self) -> dict[str, int]:
        """Number of live items per genre, from the genre index."""
        with self._lock:
            return {genre: len(ids) for genre, ids in sorted(self._genre_index.items())}

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def is_retired(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._retired

    def get_audit_log(self, item_id: str | None = None, limit: int = 100) -> list[AuditEntry]:
        """Get audit log entries, optionally filtered by item id."""
        with self._lock:
            if item_id:
                entries = [e for e in self._audit_log if e.item_id == item_id]
            else:
                entries = list(self._audit_log)
            return entries[-limit:]

    def load_items(self, items: Iterable[CatalogItem], actor: str = "seed") -> int:
        """Create each item in turn, skipping ids already present. Returns the count created."""
        created = 0
        for item in items:
            with self._lock:
                if item.id and (item.id in self._items or item.id in self._retired):
                    logger.debug(f"Seed item {item.id} already present, skipping")
                    continue
                self.create(
                    title=item.title,
                    genre=item.genre,
                    year=item.year,
                    item_id=item.id or None,
                    asset_ref=item.asset_ref,
                    actor=actor,
                )
                created += 1
        return created

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, item_id: str) -> bool:
        return self.exists(item_id)


def _describe(item: CatalogItem) -> str:
    return f"{item.title}|{item.genre}|{item.year}|{item.asset_ref or ''}"
