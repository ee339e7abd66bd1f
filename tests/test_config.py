"""Tests for configuration loading."""

import json

from catalog_svc.config import CONFIG_ENV_VAR, Config


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.server.port == 8060
        assert config.store.backend == "memory"
        assert config.query.genre_case_sensitive is True
        assert config.auth.enabled is False

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "server:\n  port: 9000\n"
            "store:\n  backend: sqlite\n  db_path: /tmp/c.db\n"
            "query:\n  genre_case_sensitive: false\n"
            "auth:\n  enabled: true\n  api_keys: [a, b]\n"
        )
        config = Config.from_yaml(str(path))

        assert config.server.port == 9000
        assert config.store.backend == "sqlite"
        assert config.query.genre_case_sensitive is False
        assert config.auth.api_keys == ["a", "b"]

    def test_comma_separated_keys(self):
        config = Config.from_dict({"auth": {"enabled": True, "api_keys": "one, two"}})
        assert config.auth.api_keys == ["one", "two"]

    def test_load_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"blob": {"backend": "local", "base_path": "media"}}))
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        config = Config.load()

        assert config.blob.backend == "local"
        assert config.blob.base_path == "media"

    def test_load_without_path_uses_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert Config.load() == Config()
