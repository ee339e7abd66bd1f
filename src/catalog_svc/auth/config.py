"""Capability check configuration."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class AuthConfig:
    """
    Single capability check for mutating endpoints.

    Disabled by default. When enabled, writes must present one of
    ``api_keys`` in ``header``; reads stay open.
    """
    enabled: bool = False
    header: str = "X-API-Key"
    api_keys: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> AuthConfig:
        keys = data.get("api_keys") or []
        if isinstance(keys, str):
            keys = [k.strip() for k in keys.split(",") if k.strip()]
        return cls(
            enabled=bool(data.get("enabled", False)),
            header=data.get("header", "X-API-Key"),
            api_keys=list(keys),
        )
