"""Tests for the catalog service facade."""

import pytest

from catalog_svc.assets.blob import MemoryBlobStore
from catalog_svc.catalog.store import RecordStore
from catalog_svc.config import Config
from catalog_svc.errors import AlreadyLinkedError
from catalog_svc.service import build_service


class _AssetRefusingStore(RecordStore):
    """Store that rejects every asset link, as if one landed concurrently."""

    def update(self, item_id, patch, actor="system"):
        if "asset_ref" in patch:
            raise AlreadyLinkedError(f"Item {item_id} already linked", operation="update", key=item_id)
        return super().update(item_id, patch, actor=actor)


@pytest.fixture
def refusing_service():
    return build_service(Config(), store=_AssetRefusingStore(), blobs=MemoryBlobStore())


class TestCreateItem:

    def test_link_failure_after_create_still_returns_item(self, refusing_service):
        refusing_service.asset_stored("dune.mp4")

        result = refusing_service.create_item("Dune", "SciFi", 2021, asset_key="dune.mp4")

        assert result.item.id == "m1"
        assert result.link is None
        assert "dune.mp4" in result.link_error
        assert len(refusing_service.store) == 1
        assert refusing_service.asset_state("dune.mp4").state.value == "file_pending"

    def test_without_asset(self, refusing_service):
        result = refusing_service.create_item("Heat", "Crime", 1995)
        assert result.item.title == "Heat"
        assert result.link is None
        assert result.link_error is None

    def test_stored_event_after_discarded_claim_is_dropped(self, refusing_service):
        refusing_service.create_item("Dune", "SciFi", 2021)
        refusing_service.link_asset("dune.mp4", "m1")

        event = refusing_service.asset_stored("dune.mp4")

        assert event.dropped is True
        assert event.link.state.value == "file_pending"
