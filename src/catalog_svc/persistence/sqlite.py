"""SQLite-backed record persistence."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import suppress
from pathlib import Path

from ..catalog.types import CatalogItem
from ..errors import CollaboratorUnavailableError
from .base import RecordPersistence

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "catalog.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS catalog_items (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    genre TEXT NOT NULL,
    year INTEGER NOT NULL,
    asset_ref TEXT,
    deleted INTEGER NOT NULL DEFAULT 0,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_items_genre ON catalog_items(genre);
CREATE INDEX IF NOT EXISTS idx_items_deleted ON catalog_items(deleted);
"""


def init_db(db_path: str | Path = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Open the database and create tables if they don't exist.

    Args:
        db_path: Path to the SQLite database file, or ":memory:".

    Returns:
        A connection usable from any thread (callers serialize access).
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.executescript(SCHEMA_SQL)
    conn.commit()
    return conn


class SqlitePersistence(RecordPersistence):
    """
    Stores one row per item. Deletes leave a tombstone row so the id
    stays retired across restarts.
    """

    def __init__(self, db_path: str | Path = DEFAULT_DB_PATH):
        self.db_path = str(db_path)
        try:
            self._conn = init_db(db_path)
        except sqlite3.Error as e:
            raise CollaboratorUnavailableError(
                f"Cannot open catalog database {self.db_path}: {e}", operation="open",
            ) from e
        self._lock = threading.Lock()

    def _execute(self, operation: str, item_id: str | None, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                cursor = self._conn.execute(sql, params)
                rows = cursor.fetchall()
                self._conn.commit()
                return rows
            except sqlite3.Error as e:
                with suppress(sqlite3.Error):
                    self._conn.rollback()
                logger.error(f"SQLite {operation} failed for {item_id}: {e}")
                raise CollaboratorUnavailableError(
                    f"Persistence {operation} failed: {e}", operation=operation, key=item_id,
                ) from e

    def put(self, item_id: str, item: CatalogItem) -> None:
        self._execute(
            "put", item_id,
            """
            INSERT INTO catalog_items (id, title, genre, year, asset_ref, deleted, updated_at)
            VALUES (?, ?, ?, ?, ?, 0, CURRENT_TIMESTAMP)
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                genre = excluded.genre,
                year = excluded.year,
                asset_ref = excluded.asset_ref,
                deleted = 0,
                updated_at = CURRENT_TIMESTAMP
            """,
            (item_id, item.title, item.genre, item.year, item.asset_ref),
        )

    def get(self, item_id: str) -> CatalogItem | None:
        rows = self._execute(
            "get", item_id,
            "SELECT * FROM catalog_items WHERE id = ? AND deleted = 0",
            (item_id,),
        )
        return _row_to_item(rows[0]) if rows else None

    def delete(self, item_id: str) -> None:
        self._execute(
            "delete", item_id,
            "UPDATE catalog_items SET deleted = 1, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (item_id,),
        )

    def query_all(self) -> list[CatalogItem]:
        rows = self._execute("query_all", None, "SELECT * FROM catalog_items WHERE deleted = 0")
        return [_row_to_item(r) for r in rows]

    def retired_ids(self) -> set[str]:
        rows = self._execute("retired_ids", None, "SELECT id FROM catalog_items WHERE deleted = 1")
        return {r["id"] for r in rows}

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def _row_to_item(row: sqlite3.Row) -> CatalogItem:
    return CatalogItem(
        id=row["id"],
        title=row["title"],
        genre=row["genre"],
        year=row["year"],
        asset_ref=row["asset_ref"],
    )
