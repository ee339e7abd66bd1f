"""
Catalog records

Owns catalog items (record store), answers read-only filters over
snapshots (query engine), and round-trips items through YAML.
"""

from .types import AuditEntry, CatalogItem, MIN_YEAR, id_sort_key, max_year
from .store import RecordStore
from .query import (
    Predicate,
    QueryEngine,
    all_of,
    genre_equals,
    has_asset,
    title_contains,
    year_between,
)
from .loader import load_items_from_yaml, save_items_to_yaml

__all__ = [
    "AuditEntry",
    "CatalogItem",
    "MIN_YEAR",
    "id_sort_key",
    "max_year",
    "RecordStore",
    "Predicate",
    "QueryEngine",
    "all_of",
    "genre_equals",
    "has_asset",
    "title_contains",
    "year_between",
    "load_items_from_yaml",
    "save_items_to_yaml",
]
