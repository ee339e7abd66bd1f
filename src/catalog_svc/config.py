"""Configuration for the catalog service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .auth.config import AuthConfig

# Environment variable naming a YAML/JSON config file
CONFIG_ENV_VAR = "CATALOG_CONFIG"


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8060


@dataclass
class StoreConfig:
    """Record store configuration."""
    backend: str = "memory"  # memory | sqlite
    db_path: str = "catalog.db"

    # YAML file of items loaded at startup (skipped if missing)
    seed_file: str | None = None

    # Where POST /catalog/save writes the snapshot
    export_path: str = "catalog_export.yaml"

    # Generated ids are <prefix><n>
    id_prefix: str = "m"


@dataclass
class QueryConfig:
    """Query engine configuration."""
    genre_case_sensitive: bool = True


@dataclass
class BlobConfig:
    """Asset blob storage configuration."""
    backend: str = "memory"  # memory | local
    base_path: str = "assets"


@dataclass
class LoggingConfig:
    """Log level and format used by run()."""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    query: QueryConfig = field(default_factory=QueryConfig)
    blob: BlobConfig = field(default_factory=BlobConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        auth_data = data.get("auth", {})
        return cls(
            server=ServerConfig(**data.get("server", {})),
            store=StoreConfig(**data.get("store", {})),
            query=QueryConfig(**data.get("query", {})),
            blob=BlobConfig(**data.get("blob", {})),
            auth=AuthConfig.from_dict(auth_data) if auth_data else AuthConfig(),
            logging=LoggingConfig(**data.get("logging", {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | None = None) -> Config:
        """Load from an explicit path, then $CATALOG_CONFIG, else defaults."""
        path = path or os.environ.get(CONFIG_ENV_VAR)
        if not path:
            return cls()
        if path.endswith(".json"):
            return cls.from_json(path)
        return cls.from_yaml(path)
