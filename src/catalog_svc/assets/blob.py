"""Blob storage collaborators for uploaded movie assets."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import aiofiles

from ..errors import CollaboratorUnavailableError, InvalidFieldError, NotFoundError

logger = logging.getLogger(__name__)


def normalize_key(name: str) -> str:
    """Turn an upload name into an asset key (relative, forward slashes)."""
    key = (name or "").strip().replace("\\", "/").strip("/")
    if not key or any(part in ("", ".", "..") for part in key.split("/")):
        raise InvalidFieldError(f"Invalid asset name: {name!r}", operation="store", key=name, field="key")
    return key


class BlobStore(ABC):
    """
    Narrow interface to wherever asset files live.

    Both calls are suspension points; callers must not assume the data is
    durable until ``store`` returns.
    """

    @abstractmethod
    async def store(self, name: str, data: bytes) -> str:
        """Store bytes under a name and return the asset key.

        Raises:
            InvalidFieldError: If the name cannot be used as a key
            CollaboratorUnavailableError: If the backend fails
        """

    @abstractmethod
    async def fetch(self, key: str) -> bytes:
        """Return the bytes stored under key.

        Raises:
            NotFoundError: If nothing is stored under key
            CollaboratorUnavailableError: If the backend fails
        """

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check whether a key has been stored."""


class MemoryBlobStore(BlobStore):
    """Process-local blob store, for tests and single-node demos."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    async def store(self, name: str, data: bytes) -> str:
        key = normalize_key(name)
        self._blobs[key] = bytes(data)
        logger.debug(f"Stored {len(data)} bytes in memory under {key}")
        return key

    async def fetch(self, key: str) -> bytes:
        try:
            return self._blobs[key]
        except KeyError:
            raise NotFoundError(f"Asset not found: {key}", operation="fetch", key=key) from None

    async def exists(self, key: str) -> bool:
        return key in self._blobs


class LocalBlobStore(BlobStore):
    """
    Filesystem blob store rooted at ``base_path``.

    Example:
        >>> blobs = LocalBlobStore("/data/assets")
        >>> key = await blobs.store("dune.mp4", payload)
    """

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path).resolve()

    def _validate_path(self, key: str) -> Path:
        """Resolve key under base_path, refusing anything that escapes it."""
        full_path = (self.base_path / key).resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError:
            raise InvalidFieldError(
                f"Asset key {key} attempts to escape base directory", operation="resolve", key=key, field="key",
            ) from None
        return full_path

    async def store(self, name: str, data: bytes) -> str:
        key = normalize_key(name)
        full_path = self._validate_path(key)
        try:
            full_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(full_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Blob store write failed for {key}: {e}")
            raise CollaboratorUnavailableError(f"Failed to store {key}: {e}", operation="store", key=key) from e
        logger.info(f"Stored {len(data)} bytes at {full_path}")
        return key

    async def fetch(self, key: str) -> bytes:
        full_path = self._validate_path(key)
        if not full_path.is_file():
            raise NotFoundError(f"Asset not found: {key}", operation="fetch", key=key)
        try:
            async with aiofiles.open(full_path, "rb") as f:
                return await f.read()
        except OSError as e:
            logger.error(f"Blob store read failed for {key}: {e}")
            raise CollaboratorUnavailableError(f"Failed to fetch {key}: {e}", operation="fetch", key=key) from e

    async def exists(self, key: str) -> bool:
        return self._validate_path(key).is_file()
