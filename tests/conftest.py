"""Shared test fixtures for the catalog service tests."""

import pytest
from fastapi.testclient import TestClient

from catalog_svc.assets.blob import MemoryBlobStore
from catalog_svc.assets.linker import AssetLinker
from catalog_svc.catalog.query import QueryEngine
from catalog_svc.catalog.store import RecordStore
from catalog_svc.config import Config
from catalog_svc.main import create_app


# =============================================================================
# Component Fixtures
# =============================================================================

@pytest.fixture
def store() -> RecordStore:
    """Empty in-memory record store."""
    return RecordStore()


@pytest.fixture
def seeded_store(store) -> RecordStore:
    """Store with a handful of movies across genres, created out of id order."""
    store.create(title="Dune", genre="SciFi", year=2021)                 # m1
    store.create(title="Heat", genre="Crime", year=1995)                 # m2
    store.create(title="Arrival", genre="SciFi", year=2016)              # m3
    store.create(title="The General", genre="Comedy", year=1926)         # m4
    store.create(title="Metropolis", genre="scifi", year=1927)           # m5
    return store


@pytest.fixture
def query(seeded_store) -> QueryEngine:
    return QueryEngine(seeded_store)


@pytest.fixture
def linker(store) -> AssetLinker:
    return AssetLinker(store)


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


# =============================================================================
# Service / App Fixtures
# =============================================================================

@pytest.fixture
def config() -> Config:
    """Default configuration: memory store, memory blobs, no auth."""
    return Config()


@pytest.fixture
def app(config, store, blobs):
    return create_app(config, store=store, blob_store=blobs)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def secured_client(store, blobs) -> TestClient:
    """Client against an app with the write capability check enabled."""
    config = Config.from_dict({"auth": {"enabled": True, "api_keys": ["s3cret-key"]}})
    return TestClient(create_app(config, store=store, blob_store=blobs))
