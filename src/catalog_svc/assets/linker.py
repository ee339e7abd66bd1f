"""Asset linker - pairs stored files with the catalog records that reference them.

The "file stored" and "record wants this file" events arrive independently
and in either order. Each asset key walks a small state machine:

    unlinked ──file_stored──────────▶ file_pending ──record_requests_asset──▶ linked
    unlinked ──record_requests_asset─▶ record_pending ──file_stored─────────▶ linked

Entering ``linked`` performs exactly one record store update that sets the
item's asset_ref. Transitions for one key are serialized by a per-key lock;
different keys never block each other. A record holds at most one pending
claim at a time.
"""

from __future__ import annotations

import logging
import threading
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterator

from ..catalog.store import RecordStore
from ..catalog.types import CatalogItem
from ..errors import AlreadyLinkedError, NotFoundError, StaleAssetLinkError

logger = logging.getLogger(__name__)


class LinkState(str, Enum):
    """Where an asset key is in the linking lifecycle."""
    UNLINKED = "unlinked"
    FILE_PENDING = "file_pending"
    RECORD_PENDING = "record_pending"
    LINKED = "linked"


@dataclass(frozen=True, slots=True)
class AssetLink:
    """Current linking state for one asset key."""
    key: str
    state: LinkState = LinkState.UNLINKED
    record_id: str | None = None
    updated_at: str | None = None


@dataclass
class _KeyLock:
    """Per-key lock plus the number of threads holding or waiting on it."""
    lock: threading.RLock = field(default_factory=threading.RLock)
    users: int = 0


class AssetLinker:
    """
    Reconciles file-stored and record-requests-asset events per asset key.

    Only ever mutates the record store through its public update /
    replace_asset operations.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._slots: dict[str, AssetLink] = {}
        self._pending_by_record: dict[str, str] = {}  # record id -> key it waits for
        self._key_locks: dict[str, _KeyLock] = {}
        self._guard = threading.RLock()
        self._adopt_existing_links()

    def _adopt_existing_links(self) -> None:
        """Items that already carry an asset_ref (seeded or persisted) start linked."""
        for item in self._store.snapshot():
            if item.asset_ref:
                self._put(AssetLink(key=item.asset_ref, state=LinkState.LINKED, record_id=item.id))

    # =========================================================================
    # Slot bookkeeping
    # =========================================================================

    @contextmanager
    def _key_lock(self, key: str) -> Iterator[None]:
        """Hold the lock for one key; it is dropped once nobody uses it."""
        with self._guard:
            entry = self._key_locks.get(key)
            if entry is None:
                entry = self._key_locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._key_locks[key]

    @contextmanager
    def _locked(self, *keys: str) -> Iterator[None]:
        """Hold the locks for several keys, always acquired in sorted order."""
        with ExitStack() as stack:
            for key in sorted(set(keys)):
                stack.enter_context(self._key_lock(key))
            yield

    def _get(self, key: str) -> AssetLink:
        with self._guard:
            return self._slots.get(key) or AssetLink(key=key)

    def _put(self, link: AssetLink) -> AssetLink:
        stamped = AssetLink(
            key=link.key,
            state=link.state,
            record_id=link.record_id,
            updated_at=datetime.now(timezone.utc).isoformat(),
        )
        with self._guard:
            previous = self._slots.get(stamped.key)
            if previous is not None and previous.state == LinkState.RECORD_PENDING:
                if self._pending_by_record.get(previous.record_id) == stamped.key:
                    del self._pending_by_record[previous.record_id]

            if stamped.state == LinkState.UNLINKED:
                self._slots.pop(stamped.key, None)
            else:
                self._slots[stamped.key] = stamped
            if stamped.state == LinkState.RECORD_PENDING:
                self._pending_by_record[stamped.record_id] = stamped.key
        return stamped

    def _claim(self, record_id: str, key: str) -> AssetLink:
        """Move key to record_pending, unless the record already waits on another key."""
        with self._guard:
            waiting_on = self._pending_by_record.get(record_id)
            if waiting_on is not None and waiting_on != key:
                raise AlreadyLinkedError(
                    f"Item {record_id} already awaiting asset {waiting_on}",
                    operation="record_requests_asset", key=record_id,
                )
            logger.info(f"Record {record_id} awaiting asset file: {key}")
            return self._put(AssetLink(key=key, state=LinkState.RECORD_PENDING, record_id=record_id))

    def _link(self, key: str, record_id: str, actor: str) -> AssetLink:
        """Enter the linked state: one record store update, or a discard."""
        try:
            self._store.update(record_id, {"asset_ref": key}, actor=actor)
        except NotFoundError:
            self._put(AssetLink(key=key))
            logger.warning(f"Stale asset link discarded: {key} -> {record_id} (record no longer exists)")
            raise StaleAssetLinkError(
                f"Record {record_id} no longer exists; asset {key} discarded",
                operation="link", key=key,
            ) from None
        except AlreadyLinkedError:
            self._put(AssetLink(key=key, state=LinkState.FILE_PENDING))
            logger.warning(f"Asset claim discarded: {record_id} already has an asset, {key} left file_pending")
            raise StaleAssetLinkError(
                f"Record {record_id} already has an asset; claim on {key} discarded",
                operation="link", key=key,
            ) from None

        linked = self._put(AssetLink(key=key, state=LinkState.LINKED, record_id=record_id))

        # A delete that slipped in after the update found nothing to release
        if not self._store.exists(record_id):
            self._put(AssetLink(key=key, state=LinkState.FILE_PENDING))
            logger.warning(f"Record {record_id} deleted while linking {key}; asset left file_pending")
            raise StaleAssetLinkError(
                f"Record {record_id} deleted while linking; asset {key} released",
                operation="link", key=key,
            )

        logger.info(f"Asset linked: {key} -> {record_id}")
        return linked

    def _request(self, item: CatalogItem, key: str, actor: str) -> AssetLink:
        """record_requests_asset with the key lock already held."""
        current = self._get(key)

        if current.state == LinkState.LINKED:
            raise AlreadyLinkedError(
                f"Asset {key} already linked to {current.record_id}",
                operation="record_requests_asset", key=key,
            )

        if item.asset_ref is not None:
            raise AlreadyLinkedError(
                f"Item {item.id} already linked to {item.asset_ref}; use relink",
                operation="record_requests_asset", key=item.id,
            )

        if current.state == LinkState.RECORD_PENDING:
            if current.record_id == item.id:
                return current
            raise AlreadyLinkedError(
                f"Asset {key} already claimed by {current.record_id}",
                operation="record_requests_asset", key=key,
            )

        waiting_on = self.pending_key(item.id)
        if waiting_on is not None:
            raise AlreadyLinkedError(
                f"Item {item.id} already awaiting asset {waiting_on}",
                operation="record_requests_asset", key=item.id,
            )

        if current.state == LinkState.FILE_PENDING:
            return self._link(key, item.id, actor)

        return self._claim(item.id, key)

    # =========================================================================
    # Events
    # =========================================================================

    def file_stored(self, key: str, actor: str = "system") -> AssetLink:
        """
        Record that the file for key has been stored.

        Idempotent: repeating the event for a pending or linked key changes
        nothing.

        Raises:
            StaleAssetLinkError: If the waiting record was deleted or got
                another asset meanwhile
        """
        with self._locked(key):
            current = self._get(key)

            if current.state == LinkState.UNLINKED:
                logger.info(f"Asset file stored, awaiting record: {key}")
                return self._put(AssetLink(key=key, state=LinkState.FILE_PENDING))

            if current.state == LinkState.RECORD_PENDING:
                return self._link(key, current.record_id, actor)

            # FILE_PENDING or LINKED: duplicate event
            logger.debug(f"Duplicate file_stored for {key} ignored (state={current.state.value})")
            return current

    def record_requests_asset(self, record_id: str, key: str, actor: str = "system") -> AssetLink:
        """
        Record that a catalog item should reference the file stored under key.

        Raises:
            NotFoundError: If the record does not exist
            AlreadyLinkedError: If the key is linked or claimed by another
                record, or the record already has (or awaits) a different asset
            StaleAssetLinkError: If the record changes before linking
        """
        with self._locked(key):
            return self._request(self._store.get(record_id), key, actor)

    def create_with_asset(
        self,
        key: str,
        create: Callable[[], CatalogItem],
        actor: str = "system",
    ) -> tuple[CatalogItem, AssetLink]:
        """
        Create a record and request key for it under the key's lock.

        The key is checked before ``create`` runs, so a key that is already
        linked or claimed rejects the request without creating anything.
        """
        with self._locked(key):
            current = self._get(key)
            if current.state in (LinkState.LINKED, LinkState.RECORD_PENDING):
                raise AlreadyLinkedError(
                    f"Asset {key} already claimed by {current.record_id}",
                    operation="create", key=key,
                )
            item = create()
            return item, self._request(item, key, actor)

    def relink(self, record_id: str, key: str, actor: str = "system") -> AssetLink:
        """
        Explicitly replace a record's asset with another stored file.

        The new key must already have its file stored and be unclaimed. The
        previous key keeps its file and returns to file_pending.
        """
        item = self._store.get(record_id)
        old_key = item.asset_ref
        keys = (key,) if old_key is None else (key, old_key)

        with self._locked(*keys):
            current = self._get(key)
            if current.state == LinkState.LINKED and current.record_id == record_id:
                return current
            if current.state in (LinkState.LINKED, LinkState.RECORD_PENDING):
                raise AlreadyLinkedError(
                    f"Asset {key} already claimed by {current.record_id}",
                    operation="relink", key=key,
                )
            if current.state == LinkState.UNLINKED:
                raise NotFoundError(f"No stored file for asset {key}", operation="relink", key=key)

            try:
                self._store.replace_asset(record_id, key, actor=actor)
            except NotFoundError:
                raise StaleAssetLinkError(
                    f"Record {record_id} no longer exists; relink to {key} abandoned",
                    operation="relink", key=key,
                ) from None

            if old_key is not None and old_key != key:
                self._put(AssetLink(key=old_key, state=LinkState.FILE_PENDING))
            logger.info(f"Asset relinked: {record_id} {old_key} -> {key}")
            return self._put(AssetLink(key=key, state=LinkState.LINKED, record_id=record_id))

    def release(self, record_id: str) -> list[str]:
        """
        Free keys linked to a deleted record; their files become file_pending.

        Record-pending claims are left alone: they resolve as stale when the
        file arrives.
        """
        with self._guard:
            linked = [s.key for s in self._slots.values()
                      if s.state == LinkState.LINKED and s.record_id == record_id]
        released = []
        for key in linked:
            with self._locked(key):
                current = self._get(key)
                if current.state == LinkState.LINKED and current.record_id == record_id:
                    self._put(AssetLink(key=key, state=LinkState.FILE_PENDING))
                    released.append(key)
        if released:
            logger.info(f"Released assets of deleted record {record_id}: {released}")
        return released

    # =========================================================================
    # Inspection
    # =========================================================================

    def state(self, key: str) -> AssetLink:
        return self._get(key)

    def pending_key(self, record_id: str) -> str | None:
        """The key a record is waiting for, if any."""
        with self._guard:
            return self._pending_by_record.get(record_id)

    def links(self) -> list[AssetLink]:
        with self._guard:
            return sorted(self._slots.values(), key=lambda s: s.key)
