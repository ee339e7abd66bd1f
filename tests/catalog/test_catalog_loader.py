"""Tests for YAML seeding and export of the catalog."""

import yaml

from catalog_svc.catalog.loader import load_items_from_yaml, save_items_to_yaml
from catalog_svc.catalog.store import RecordStore


SEED_YAML = """
items:
  - id: m1
    title: Dune
    genre: SciFi
    year: 2021
    asset_ref: dune.mp4
  - title: Heat
    genre: Crime
    year: 1995
  - id: m7
    title: Metropolis
    genre: SciFi
    year: 1927
"""


class TestLoadItems:

    def test_load_seed_file(self, tmp_path, store):
        path = tmp_path / "catalog.yaml"
        path.write_text(SEED_YAML)

        loaded = load_items_from_yaml(path, store)

        assert len(loaded) == 3
        assert store.get("m1").asset_ref == "dune.mp4"
        assert store.get("m7").title == "Metropolis"
        # generated id for the id-less entry
        assert any(i.title == "Heat" for i in store.snapshot())

    def test_next_generated_id_follows_seeded_ids(self, tmp_path, store):
        path = tmp_path / "catalog.yaml"
        path.write_text(SEED_YAML)
        load_items_from_yaml(path, store)

        assert store.create(title="Alien", genre="SciFi", year=1979).id == "m8"

    def test_reload_skips_existing(self, tmp_path, store):
        path = tmp_path / "catalog.yaml"
        path.write_text("items:\n  - {id: m1, title: Dune, genre: SciFi, year: 2021}\n")

        load_items_from_yaml(path, store)
        again = load_items_from_yaml(path, store)

        assert again == []
        assert len(store) == 1

    def test_missing_file_is_empty(self, tmp_path, store):
        assert load_items_from_yaml(tmp_path / "nope.yaml", store) == []
        assert len(store) == 0


class TestSaveItems:

    def test_export_then_seed_new_store(self, tmp_path, seeded_store):
        path = tmp_path / "out" / "export.yaml"

        count = save_items_to_yaml(path, seeded_store)
        assert count == 5

        data = yaml.safe_load(path.read_text())
        assert [d["id"] for d in data["items"]] == ["m1", "m2", "m3", "m4", "m5"]

        fresh = RecordStore()
        load_items_from_yaml(path, fresh)
        assert fresh.snapshot() == seeded_store.snapshot()
