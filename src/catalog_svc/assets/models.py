"""Pydantic models for the Assets API."""

from __future__ import annotations

from pydantic import BaseModel


class AssetLinkModel(BaseModel):
    """Linking state of one asset key."""
    key: str
    state: str
    record_id: str | None = None
    updated_at: str | None = None


class AssetEventResponse(AssetLinkModel):
    """Result of a file-stored event; stale links are dropped, not failed."""
    dropped: bool = False
    reason: str | None = None


class AssetLinkListResponse(BaseModel):
    links: list[AssetLinkModel]
    count: int
