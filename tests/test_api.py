"""HTTP tests for the catalog service API."""

import yaml
from fastapi.testclient import TestClient

from catalog_svc.config import Config
from catalog_svc.main import create_app


DUNE = {"title": "Dune", "genre": "SciFi", "year": 2021}


class TestCatalogEndpoints:

    def test_create_then_filter_by_genre(self, client):
        response = client.post("/catalog", json=DUNE)
        assert response.status_code == 201
        created = response.json()
        assert created["id"] == "m1"
        assert created["asset_ref"] is None

        response = client.get("/catalog/SciFi")
        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["items"][0] == {"id": "m1", "title": "Dune", "genre": "SciFi", "year": 2021, "asset_ref": None}

    def test_invalid_year_is_422_and_nothing_stored(self, client):
        response = client.post("/catalog", json={"title": "Ancient", "genre": "Drama", "year": 1700})

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "InvalidField"
        assert body["field"] == "year"
        assert body["operation"] == "create"
        assert client.get("/catalog").json()["count"] == 0

    def test_duplicate_id_is_409(self, client):
        client.post("/catalog", json={**DUNE, "id": "dune"})
        response = client.post("/catalog", json={**DUNE, "id": "dune"})

        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateId"
        assert response.json()["key"] == "dune"

    def test_unknown_genre_is_empty_not_error(self, client):
        client.post("/catalog", json=DUNE)
        response = client.get("/catalog/Western")
        assert response.status_code == 200
        assert response.json() == {"items": [], "count": 0}

    def test_list_in_id_order_with_filters(self, client):
        for n in range(11):
            client.post("/catalog", json={"title": f"Movie {n}", "genre": "Drama", "year": 1990 + n})

        ids = [i["id"] for i in client.get("/catalog").json()["items"]]
        assert ids == [f"m{n}" for n in range(1, 12)]

        narrowed = client.get("/catalog", params={"year_from": 1995, "year_to": 1996}).json()
        assert [i["id"] for i in narrowed["items"]] == ["m6", "m7"]

    def test_get_update_delete_item(self, client):
        client.post("/catalog", json=DUNE)

        assert client.get("/catalog/items/m1").json()["title"] == "Dune"

        patched = client.patch("/catalog/items/m1", json={"year": 2022})
        assert patched.status_code == 200
        assert patched.json()["year"] == 2022

        assert client.delete("/catalog/items/m1").status_code == 200
        missing = client.get("/catalog/items/m1")
        assert missing.status_code == 404
        assert missing.json()["error"] == "NotFound"

        # retired id is not reissued
        assert client.post("/catalog", json=DUNE).json()["id"] == "m2"

    def test_genre_counts_and_audit(self, client):
        client.post("/catalog", json=DUNE)
        client.post("/catalog", json={"title": "Heat", "genre": "Crime", "year": 1995})

        counts = client.get("/genres").json()
        assert counts == {"genres": {"Crime": 1, "SciFi": 1}, "total": 2}

        audit = client.get("/audit", params={"item_id": "m1"}).json()
        assert audit["count"] == 1
        assert audit["entries"][0]["action"] == "created"


class TestAssetEndpoints:

    def test_upload_then_create_with_asset_links(self, client):
        upload = client.post("/assets/dune.mp4", content=b"frames")
        assert upload.status_code == 201
        assert upload.json()["state"] == "file_pending"

        created = client.post("/catalog", json={**DUNE, "asset_key": "dune.mp4"}).json()
        assert created["link_state"] == "linked"
        assert created["asset_ref"] == "dune.mp4"

        content = client.get("/assets/dune.mp4/content")
        assert content.status_code == 200
        assert content.content == b"frames"

    def test_link_before_upload(self, client):
        client.post("/catalog", json=DUNE)

        pending = client.post("/assets/dune.mp4/link/m1")
        assert pending.json()["state"] == "record_pending"

        client.post("/assets/dune.mp4", content=b"frames")
        state = client.get("/assets/dune.mp4").json()
        assert state["state"] == "linked"
        assert state["record_id"] == "m1"
        assert client.get("/catalog/items/m1").json()["asset_ref"] == "dune.mp4"

    def test_linked_key_conflict(self, client):
        client.post("/catalog", json=DUNE)
        client.post("/catalog", json={"title": "Arrival", "genre": "SciFi", "year": 2016})
        client.post("/assets/dune.mp4", content=b"frames")
        client.post("/assets/dune.mp4/link/m1")

        response = client.post("/assets/dune.mp4/link/m2")
        assert response.status_code == 409
        assert response.json()["error"] == "AlreadyLinked"

    def test_stale_link_dropped_on_stored_event(self, client):
        client.post("/catalog", json=DUNE)
        client.post("/assets/dune.mp4/link/m1")
        client.delete("/catalog/items/m1")

        response = client.post("/assets/dune.mp4/stored")
        assert response.status_code == 200
        body = response.json()
        assert body["dropped"] is True
        assert body["state"] == "unlinked"

    def test_replace_asset(self, client):
        client.post("/assets/dune.mp4", content=b"a")
        client.post("/assets/dune-4k.mp4", content=b"b")
        client.post("/catalog", json={**DUNE, "asset_key": "dune.mp4"})

        response = client.put("/catalog/items/m1/asset/dune-4k.mp4")
        assert response.status_code == 200
        assert response.json()["asset_ref"] == "dune-4k.mp4"
        assert client.get("/assets/dune.mp4").json()["state"] == "file_pending"

    def test_missing_content_is_404(self, client):
        assert client.get("/assets/nope.mp4/content").status_code == 404

    def test_record_cannot_wait_on_two_keys(self, client):
        client.post("/catalog", json=DUNE)
        assert client.post("/assets/k1/link/m1").json()["state"] == "record_pending"

        second = client.post("/assets/k2/link/m1")
        assert second.status_code == 409
        assert second.json()["error"] == "AlreadyLinked"

        assert client.post("/assets/k1", content=b"a").json()["state"] == "linked"
        upload = client.post("/assets/k2", content=b"b")
        assert upload.status_code == 201
        assert upload.json()["state"] == "file_pending"
        assert client.post("/assets/k2/stored").status_code == 200

    def test_create_with_claimed_asset_creates_nothing(self, client):
        client.post("/assets/k", content=b"a")
        client.post("/catalog", json={**DUNE, "asset_key": "k"})

        response = client.post("/catalog", json={"title": "B", "genre": "Drama", "year": 2000, "asset_key": "k"})

        assert response.status_code == 409
        assert response.json()["error"] == "AlreadyLinked"
        assert client.get("/catalog").json()["count"] == 1


class TestWriteCapability:

    def test_reads_open(self, secured_client):
        assert secured_client.get("/catalog").status_code == 200

    def test_missing_key_is_401(self, secured_client):
        assert secured_client.post("/catalog", json=DUNE).status_code == 401

    def test_wrong_key_is_403(self, secured_client):
        response = secured_client.post("/catalog", json=DUNE, headers={"X-API-Key": "guess"})
        assert response.status_code == 403

    def test_valid_key_writes_and_is_audited(self, secured_client):
        response = secured_client.post("/catalog", json=DUNE, headers={"X-API-Key": "s3cret-key"})
        assert response.status_code == 201

        entry = secured_client.get("/audit").json()["entries"][0]
        assert entry["actor"].startswith("key:s3cret")


class TestServiceEndpoints:

    def test_health(self, client):
        client.post("/catalog", json=DUNE)
        data = client.get("/health").json()
        assert data["status"] == "healthy"
        assert data["items"] == 1
        assert data["store_backend"] == "memory"

    def test_root_lists_endpoints(self, client):
        data = client.get("/").json()
        assert data["service"] == "Movie Catalog Service"
        assert "POST /catalog" in data["endpoints"]

    def test_save_exports_yaml(self, tmp_path):
        export = tmp_path / "export.yaml"
        config = Config.from_dict({"store": {"export_path": str(export)}})
        client = TestClient(create_app(config))
        client.post("/catalog", json=DUNE)

        response = client.post("/catalog/save")

        assert response.json()["count"] == 1
        assert yaml.safe_load(export.read_text())["items"][0]["title"] == "Dune"

    def test_seed_file_and_sqlite_backend(self, tmp_path):
        seed = tmp_path / "seed.yaml"
        seed.write_text("items:\n  - {id: m1, title: Heat, genre: Crime, year: 1995}\n")
        config = Config.from_dict({
            "store": {"backend": "sqlite", "db_path": str(tmp_path / "c.db"), "seed_file": str(seed)},
        })

        with TestClient(create_app(config)) as client:
            assert client.get("/catalog/Crime").json()["count"] == 1
            assert client.post("/catalog", json=DUNE).json()["id"] == "m2"
