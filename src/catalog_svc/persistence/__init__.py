"""Record persistence backends for the catalog store."""

from .base import RecordPersistence
from .sqlite import SqlitePersistence

__all__ = [
    "RecordPersistence",
    "SqlitePersistence",
]
