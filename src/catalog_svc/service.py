"""Core service layer - wires the record store, query engine, asset linker and blob store.

Flow:
1. HTTP layer validates the request body and calls the service
2. Writes go to the record store (or to the asset linker, which updates
   the store itself)
3. Reads run through the query engine against a store snapshot
4. Uploads go to the blob store, then notify the linker
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any

from .assets.blob import BlobStore, LocalBlobStore, MemoryBlobStore
from .assets.linker import AssetLink, AssetLinker, LinkState
from .catalog.loader import load_items_from_yaml, save_items_to_yaml
from .catalog.query import QueryEngine
from .catalog.store import RecordStore
from .catalog.types import CatalogItem
from .config import Config
from .errors import AlreadyLinkedError, StaleAssetLinkError
from .persistence.base import RecordPersistence
from .persistence.sqlite import SqlitePersistence

logger = logging.getLogger(__name__)


@dataclass
class EventResult:
    """Outcome of a file-stored event, which never fails on a stale link."""
    link: AssetLink
    dropped: bool = False
    reason: str | None = None


@dataclass
class CreateResult:
    """A created item plus its link, or why linking failed after the item committed."""
    item: CatalogItem
    link: AssetLink | None = None
    link_error: str | None = None


@dataclass
class CatalogService:
    """
    Facade over the catalog components.

    Every collaborator is passed in; nothing here reaches for module-level
    state, so tests can hand in doubles for the blob store or persistence.
    """
    store: RecordStore
    query: QueryEngine
    linker: AssetLinker
    blobs: BlobStore
    config: Config = field(default_factory=Config)
    persistence: RecordPersistence | None = None

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def create_item(
        self,
        title: str,
        genre: str,
        year: int,
        item_id: str | None = None,
        asset_key: str | None = None,
        actor: str = "system",
    ) -> CreateResult:
        """
        Create an item; if asset_key is given, also request that asset.

        A key that is already linked or claimed is rejected before anything
        is created. Should linking fail once the item has committed, the item
        is still returned, with the failure in ``link_error``.
        """
        created: list[CatalogItem] = []

        def create() -> CatalogItem:
            created.append(self.store.create(title=title, genre=genre, year=year, item_id=item_id, actor=actor))
            return created[-1]

        if not asset_key:
            return CreateResult(item=create())

        try:
            item, link = self.linker.create_with_asset(asset_key, create, actor=actor)
        except (AlreadyLinkedError, StaleAssetLinkError) as e:
            if not created:
                raise
            logger.warning(f"Item {created[0].id} created but asset {asset_key} not linked: {e}")
            return CreateResult(item=created[0], link_error=str(e))
        if link.state == LinkState.LINKED:
            item = replace(item, asset_ref=link.key)
        return CreateResult(item=item, link=link)

    def get_item(self, item_id: str) -> CatalogItem:
        return self.store.get(item_id)

    def update_item(self, item_id: str, patch: dict[str, Any], actor: str = "system") -> CatalogItem:
        return self.store.update(item_id, patch, actor=actor)

    def delete_item(self, item_id: str, actor: str = "system") -> CatalogItem:
        removed = self.store.delete(item_id, actor=actor)
        self.linker.release(item_id)
        return removed

    def list_items(self, **criteria: Any) -> list[CatalogItem]:
        return self.query.search(**criteria)

    def items_by_genre(self, genre: str) -> list[CatalogItem]:
        return self.query.filter_by_genre(genre)

    # -------------------------------------------------------------------------
    # Assets
    # -------------------------------------------------------------------------

    def asset_stored(self, key: str, actor: str = "system") -> EventResult:
        """
        Handle a file-stored event.

        A stale link (waiting record deleted) is logged and dropped so it
        cannot block unrelated asset events.
        """
        try:
            return EventResult(link=self.linker.file_stored(key, actor=actor))
        except StaleAssetLinkError as e:
            logger.warning(f"Dropped file-stored event for {key}: {e}")
            return EventResult(link=self.linker.state(key), dropped=True, reason=str(e))

    async def upload_asset(self, name: str, data: bytes, actor: str = "system") -> EventResult:
        """Store bytes in the blob store, then signal the linker."""
        key = await self.blobs.store(name, data)
        return self.asset_stored(key, actor=actor)

    async def fetch_asset(self, key: str) -> bytes:
        return await self.blobs.fetch(key)

    def link_asset(self, key: str, item_id: str, actor: str = "system") -> AssetLink:
        return self.linker.record_requests_asset(item_id, key, actor=actor)

    def relink_asset(self, item_id: str, key: str, actor: str = "system") -> AssetLink:
        return self.linker.relink(item_id, key, actor=actor)

    def asset_state(self, key: str) -> AssetLink:
        return self.linker.state(key)

    # -------------------------------------------------------------------------
    # Export / lifecycle
    # -------------------------------------------------------------------------

    def export(self, path: str | None = None) -> tuple[str, int]:
        target = path or self.config.store.export_path
        return target, save_items_to_yaml(target, self.store)

    def close(self) -> None:
        if self.persistence is not None:
            self.persistence.close()


# =============================================================================
# Construction from config
# =============================================================================

def build_persistence(config: Config) -> RecordPersistence | None:
    backend = config.store.backend.lower()
    if backend == "memory":
        return None
    if backend == "sqlite":
        return SqlitePersistence(config.store.db_path)
    raise ValueError(f"Unknown store backend: {config.store.backend}")


def build_blob_store(config: Config) -> BlobStore:
    backend = config.blob.backend.lower()
    if backend == "memory":
        return MemoryBlobStore()
    if backend == "local":
        return LocalBlobStore(config.blob.base_path)
    raise ValueError(f"Unknown blob backend: {config.blob.backend}")


def build_service(
    config: Config,
    store: RecordStore | None = None,
    blobs: BlobStore | None = None,
    persistence: RecordPersistence | None = None,
) -> CatalogService:
    """
    Build a CatalogService from config.

    Any collaborator passed explicitly wins over the configured one.
    """
    if store is None:
        if persistence is None:
            persistence = build_persistence(config)
        store = RecordStore(persistence=persistence, id_prefix=config.store.id_prefix)
        if config.store.seed_file:
            load_items_from_yaml(config.store.seed_file, store)

    service = CatalogService(
        store=store,
        query=QueryEngine(store, genre_case_sensitive=config.query.genre_case_sensitive),
        linker=AssetLinker(store),
        blobs=blobs if blobs is not None else build_blob_store(config),
        config=config,
        persistence=persistence,
    )
    logger.info(
        f"Catalog service built: store={config.store.backend} blob={config.blob.backend} items={len(store)}"
    )
    return service
