"""Catalog seed/export - YAML round-trip for catalog items."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .store import RecordStore
from .types import CatalogItem

logger = logging.getLogger(__name__)


def load_items_from_yaml(path: str | Path, store: RecordStore) -> list[CatalogItem]:
    """
    Seed the store from a YAML file of the form ``items: [{title, genre, year, ...}]``.

    Items whose id is already present (or retired) are skipped, so seeding
    an already-persisted store is harmless.
    """
    path = Path(path)
    if not path.exists():
        logger.info(f"Catalog seed file not found: {path}")
        return []

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not data or "items" not in data:
        return []

    items = [_parse_item(d) for d in data["items"]]
    before = {i.id for i in store.snapshot()}
    created = store.load_items(items)
    loaded = [i for i in store.snapshot() if i.id not in before]

    logger.info(f"Loaded {created} catalog items from {path}")
    return loaded


def save_items_to_yaml(path: str | Path, store: RecordStore) -> int:
    """Export the current snapshot to a YAML file. Returns the item count."""
    path = Path(path)
    items = store.snapshot()

    data: dict[str, Any] = {
        "items": [_serialize_item(i) for i in items],
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

    logger.info(f"Saved {len(items)} catalog items to {path}")
    return len(items)


def _parse_item(data: dict[str, Any]) -> CatalogItem:
    """Parse a single item; validation happens when the store creates it."""
    return CatalogItem(
        id=str(data.get("id", "") or ""),
        title=data.get("title", ""),
        genre=data.get("genre", ""),
        year=data.get("year", 0),
        asset_ref=data.get("asset_ref"),
    )


def _serialize_item(item: CatalogItem) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": item.id,
        "title": item.title,
        "genre": item.genre,
        "year": item.year,
    }
    if item.asset_ref:
        data["asset_ref"] = item.asset_ref
    return data
