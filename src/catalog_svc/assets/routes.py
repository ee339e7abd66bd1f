"""FastAPI routes for asset upload and linking."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ..deps import get_actor, get_service
from ..service import CatalogService, EventResult
from .linker import AssetLink
from .models import AssetEventResponse, AssetLinkListResponse, AssetLinkModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/assets", tags=["Assets"])


def _link_to_model(link: AssetLink) -> AssetLinkModel:
    return AssetLinkModel(
        key=link.key,
        state=link.state.value,
        record_id=link.record_id,
        updated_at=link.updated_at,
    )


def _event_to_model(result: EventResult) -> AssetEventResponse:
    return AssetEventResponse(
        key=result.link.key,
        state=result.link.state.value,
        record_id=result.link.record_id,
        updated_at=result.link.updated_at,
        dropped=result.dropped,
        reason=result.reason,
    )


@router.get("", response_model=AssetLinkListResponse)
async def list_links(service: CatalogService = Depends(get_service)):
    """Every asset key the linker is tracking (unlinked keys are omitted)."""
    links = service.linker.links()
    return AssetLinkListResponse(links=[_link_to_model(l) for l in links], count=len(links))


@router.post("/{key}", response_model=AssetEventResponse, status_code=201)
async def upload_asset(
    key: str,
    request: Request,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """
    Upload raw file bytes under ``key``.

    The file is written to the blob store first; the linker is told only
    once the write has completed.
    """
    data = await request.body()
    result = await service.upload_asset(key, data, actor=actor)
    return _event_to_model(result)


@router.post("/{key}/stored", response_model=AssetEventResponse)
async def asset_stored_event(
    key: str,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """Event hook for files stored outside this service (e.g. by a storage trigger)."""
    return _event_to_model(service.asset_stored(key, actor=actor))


@router.post("/{key}/link/{item_id}", response_model=AssetLinkModel)
async def link_asset(
    key: str,
    item_id: str,
    service: CatalogService = Depends(get_service),
    actor: str = Depends(get_actor),
):
    """
    Request that catalog item ``item_id`` references asset ``key``.

    Links immediately if the file is already stored; otherwise the item
    waits in record_pending until the file arrives.
    """
    return _link_to_model(service.link_asset(key, item_id, actor=actor))


@router.get("/{key}", response_model=AssetLinkModel)
async def get_asset_state(key: str, service: CatalogService = Depends(get_service)):
    return _link_to_model(service.asset_state(key))


@router.get("/{key}/content")
async def get_asset_content(key: str, service: CatalogService = Depends(get_service)):
    data = await service.fetch_asset(key)
    return Response(content=data, media_type="application/octet-stream")
