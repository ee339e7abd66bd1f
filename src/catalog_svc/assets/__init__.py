"""Asset storage and linking of stored files to catalog items."""

from .blob import BlobStore, LocalBlobStore, MemoryBlobStore, normalize_key
from .linker import AssetLink, AssetLinker, LinkState

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "MemoryBlobStore",
    "normalize_key",
    "AssetLink",
    "AssetLinker",
    "LinkState",
]
