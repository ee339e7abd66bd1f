"""Pydantic models for the Catalog API."""

from __future__ import annotations

from pydantic import BaseModel, Field


# =============================================================================
# Request Body Models
# =============================================================================

class CreateItemBody(BaseModel):
    """Body for creating a catalog item. The id is normally assigned by the store."""
    title: str
    genre: str
    year: int
    id: str | None = None
    asset_key: str | None = None  # request linkage to this asset once stored


class UpdateItemBody(BaseModel):
    """Partial update; omitted fields keep their current values."""
    title: str | None = None
    genre: str | None = None
    year: int | None = None


# =============================================================================
# Response Models
# =============================================================================

class CatalogItemModel(BaseModel):
    """Full representation of a catalog item."""
    id: str
    title: str
    genre: str
    year: int
    asset_ref: str | None = None


class CreateItemResponse(CatalogItemModel):
    """Created item plus the link state when an asset was requested."""
    link_state: str | None = None
    link_error: str | None = None  # set when the item committed but linking failed


class ItemListResponse(BaseModel):
    """Response for listing or filtering items."""
    items: list[CatalogItemModel]
    count: int


class GenreCountsResponse(BaseModel):
    genres: dict[str, int] = Field(default_factory=dict)
    total: int = 0


class AuditEntryModel(BaseModel):
    timestamp: str
    item_id: str
    action: str
    actor: str = "system"
    old_value: str | None = None
    new_value: str | None = None


class AuditLogResponse(BaseModel):
    entries: list[AuditEntryModel]
    count: int


class SaveResponse(BaseModel):
    success: bool
    count: int
    message: str = ""
