"""FastAPI routes for catalog items."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from ..deps import get_actor, get_service
from ..service import CatalogService
from .models import (
    CatalogItemModel,
    CreateItemBody,
    CreateItemResponse,
    ItemListResponse,
    SaveResponse,
    UpdateItemBody,
)
from .types import CatalogItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def _item_to_model(item: CatalogItem) -> CatalogItemModel:
    return CatalogItemModel(
        id=item.id,
        title=item.title,
        genre=item.genre,
        year=item.year,
        asset_ref=item.asset_ref,
    )


def _list_response(items: list[CatalogItem]) -> ItemListResponse:
    return ItemListResponse(items=[_item_to_model(i) for i in items], count=len(items))


# =============================================================================
# Create / List
# =============================================================================

@router.post("", response_model=CreateItemResponse, status_code=201)
async def create_item(
    body: CreateItemBody,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """
    Create a catalog item.

    The store assigns the id unless one is supplied. With ``asset_key`` the
    item also requests that asset; it links now if the file is already
    stored, otherwise as soon as it arrives. A key that is already claimed
    rejects the request before the item is created.
    """
    result = service.create_item(
        title=body.title,
        genre=body.genre,
        year=body.year,
        item_id=body.id,
        asset_key=body.asset_key,
        actor=actor,
    )
    item = result.item
    return CreateItemResponse(
        id=item.id,
        title=item.title,
        genre=item.genre,
        year=item.year,
        asset_ref=item.asset_ref,
        link_state=result.link.state.value if result.link else None,
        link_error=result.link_error,
    )


@router.get("", response_model=ItemListResponse)
async def list_items(
    year_from: int | None = Query(None),
    year_to: int | None = Query(None),
    title: str | None = Query(None),
    has_asset: bool | None = Query(None),
    service: CatalogService = Depends(get_service),
):
    """List every item in id order, optionally narrowed by year, title or asset presence."""
    items = service.list_items(
        year_from=year_from,
        year_to=year_to,
        title=title,
        with_asset=has_asset,
    )
    return _list_response(items)


@router.post("/save", response_model=SaveResponse)
async def save_catalog(
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """Export the current snapshot to the configured YAML file."""
    path, count = service.export()
    logger.info(f"Catalog exported by {actor}: {count} items -> {path}")
    return SaveResponse(success=True, count=count, message=f"Saved {count} items")


# =============================================================================
# Single item
# =============================================================================

@router.get("/items/{item_id}", response_model=CatalogItemModel)
async def get_item(item_id: str, service: CatalogService = Depends(get_service)):
    return _item_to_model(service.get_item(item_id))


@router.patch("/items/{item_id}", response_model=CatalogItemModel)
async def update_item(
    item_id: str,
    body: UpdateItemBody,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """
    Update an item.

    Only provided fields are updated; the asset reference changes only
    through the asset endpoints.
    """
    patch = {}
    if body.title is not None:
        patch["title"] = body.title
    if body.genre is not None:
        patch["genre"] = body.genre
    if body.year is not None:
        patch["year"] = body.year

    return _item_to_model(service.update_item(item_id, patch, actor=actor))


@router.delete("/items/{item_id}", response_model=CatalogItemModel)
async def delete_item(
    item_id: str,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """Delete an item. Its id is retired and never issued again."""
    return _item_to_model(service.delete_item(item_id, actor=actor))


@router.put("/items/{item_id}/asset/{key}", response_model=CatalogItemModel)
async def replace_item_asset(
    item_id: str,
    key: str,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """Explicitly replace the item's asset with another stored file."""
    service.relink_asset(item_id, key, actor=actor)
    return _item_to_model(service.get_item(item_id))


# =============================================================================
# Genre filter (declared last: it matches any single segment)
# =============================================================================

@router.get("/{genre}", response_model=ItemListResponse)
async def filter_by_genre(genre: str, service: CatalogService = Depends(get_service)):
    """Items whose genre matches exactly. An unknown genre yields an empty list."""
    return _list_response(service.items_by_genre(genre))
