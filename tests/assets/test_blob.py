"""Tests for blob store backends."""

import pytest

from catalog_svc.assets.blob import LocalBlobStore, MemoryBlobStore, normalize_key
from catalog_svc.errors import InvalidFieldError, NotFoundError


class TestNormalizeKey:

    def test_strips_slashes(self):
        assert normalize_key("/posters/dune.jpg/") == "posters/dune.jpg"
        assert normalize_key("posters\\dune.jpg") == "posters/dune.jpg"

    @pytest.mark.parametrize("name", ["", "   ", "../etc/passwd", "a/./b", "a//b"])
    def test_rejects_bad_names(self, name):
        with pytest.raises(InvalidFieldError):
            normalize_key(name)


class TestMemoryBlobStore:

    @pytest.mark.asyncio
    async def test_store_and_fetch(self):
        blobs = MemoryBlobStore()
        key = await blobs.store("dune.mp4", b"frames")
        assert key == "dune.mp4"
        assert await blobs.exists(key)
        assert await blobs.fetch(key) == b"frames"

    @pytest.mark.asyncio
    async def test_fetch_missing(self):
        with pytest.raises(NotFoundError):
            await MemoryBlobStore().fetch("nope.mp4")


class TestLocalBlobStore:

    @pytest.mark.asyncio
    async def test_writes_under_base_path(self, tmp_path):
        blobs = LocalBlobStore(tmp_path)
        key = await blobs.store("trailers/dune.mp4", b"frames")

        assert (tmp_path / "trailers" / "dune.mp4").read_bytes() == b"frames"
        assert await blobs.fetch(key) == b"frames"
        assert await blobs.exists(key)

    @pytest.mark.asyncio
    async def test_missing_key(self, tmp_path):
        blobs = LocalBlobStore(tmp_path)
        assert not await blobs.exists("nope.mp4")
        with pytest.raises(NotFoundError):
            await blobs.fetch("nope.mp4")

    @pytest.mark.asyncio
    async def test_rejects_path_escape(self, tmp_path):
        blobs = LocalBlobStore(tmp_path / "assets")
        with pytest.raises(InvalidFieldError):
            await blobs.fetch("../secret.txt")
