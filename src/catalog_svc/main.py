"""FastAPI application - Movie Catalog Service.

Stores movie records, answers genre/listing queries, and links uploaded
files to the records that reference them.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .assets import routes as asset_routes
from .assets.blob import BlobStore
from .assets.linker import LinkState
from .catalog import routes as catalog_routes
from .catalog.models import AuditEntryModel, AuditLogResponse, GenreCountsResponse
from .catalog.store import RecordStore
from .config import Config
from .deps import get_service
from .errors import (
    AlreadyLinkedError,
    CatalogError,
    CollaboratorUnavailableError,
    DuplicateIdError,
    InvalidFieldError,
    NotFoundError,
    StaleAssetLinkError,
)
from .persistence.base import RecordPersistence
from .service import CatalogService, build_service

logger = logging.getLogger(__name__)

# HTTP status per error kind
ERROR_STATUS: dict[type[CatalogError], int] = {
    DuplicateIdError: 409,
    NotFoundError: 404,
    InvalidFieldError: 422,
    AlreadyLinkedError: 409,
    StaleAssetLinkError: 409,
    CollaboratorUnavailableError: 503,
}


class HealthResponse(BaseModel):
    status: str
    items: int
    linked_assets: int
    store_backend: str
    blob_backend: str


async def catalog_error_handler(request: Request, exc: CatalogError):
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    content: dict[str, Any] = {
        "error": exc.kind,
        "detail": str(exc),
        "operation": exc.operation,
        "key": exc.key,
    }
    if isinstance(exc, InvalidFieldError):
        content["field"] = exc.field
    return JSONResponse(status_code=status, content=content)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    service: CatalogService = app.state.service
    logger.info(f"Catalog service started with {len(service.store)} items")

    yield

    logger.info("Shutting down catalog service...")
    service.close()
    logger.info("Catalog service stopped")


def create_app(
    config: Config | None = None,
    store: RecordStore | None = None,
    blob_store: BlobStore | None = None,
    persistence: RecordPersistence | None = None,
) -> FastAPI:
    """
    Build the FastAPI app and its catalog service.

    Collaborators passed in replace the configured ones, which is how tests
    inject doubles. With no config, $CATALOG_CONFIG (or defaults) is used.
    """
    config = config or Config.load()
    service = build_service(config, store=store, blobs=blob_store, persistence=persistence)

    app = FastAPI(
        title="Movie Catalog Service",
        description="Movie records with genre filtering and uploaded-file linking.",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Catalog", "description": "Create, filter and list catalog items"},
            {"name": "Assets", "description": "Upload files and link them to items"},
            {"name": "Health", "description": "Service status"},
        ],
    )
    app.state.config = config
    app.state.service = service

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.include_router(catalog_routes.router)
    app.include_router(asset_routes.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health(service: CatalogService = Depends(get_service)):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            items=len(service.store),
            linked_assets=sum(1 for l in service.linker.links() if l.state == LinkState.LINKED),
            store_backend=service.config.store.backend,
            blob_backend=service.config.blob.backend,
        )

    @app.get("/genres", response_model=GenreCountsResponse, tags=["Catalog"])
    async def genre_counts(service: CatalogService = Depends(get_service)):
        """Number of items per genre."""
        counts = service.store.genre_counts()
        return GenreCountsResponse(genres=counts, total=sum(counts.values()))

    @app.get("/audit", response_model=AuditLogResponse, tags=["Catalog"])
    async def audit_log(
        item_id: str | None = None,
        limit: int = 100,
        service: CatalogService = Depends(get_service),
    ):
        """Recent catalog mutations, optionally for one item."""
        entries = service.store.get_audit_log(item_id=item_id, limit=limit)
        return AuditLogResponse(
            entries=[
                AuditEntryModel(
                    timestamp=e.timestamp,
                    item_id=e.item_id,
                    action=e.action,
                    actor=e.actor,
                    old_value=e.old_value,
                    new_value=e.new_value,
                )
                for e in entries
            ],
            count=len(entries),
        )

    @app.get("/", tags=["Health"])
    async def root():
        """Root endpoint with service info."""
        return {
            "service": "Movie Catalog Service",
            "version": __version__,
            "endpoints": {
                "POST /catalog": "Create an item",
                "GET /catalog": "List all items (year_from, year_to, title, has_asset)",
                "GET /catalog/{genre}": "Items in a genre",
                "GET|PATCH|DELETE /catalog/items/{id}": "Single item",
                "PUT /catalog/items/{id}/asset/{key}": "Replace an item's asset",
                "POST /assets/{key}": "Upload file bytes",
                "POST /assets/{key}/stored": "File-stored event hook",
                "POST /assets/{key}/link/{id}": "Link asset to item",
                "GET /assets/{key}": "Asset link state",
                "GET /genres": "Item counts per genre",
                "GET /audit": "Mutation log",
                "GET /health": "Health check",
            },
        }

    return app


def run(config_path: str | None = None):
    """Run the service with uvicorn."""
    import uvicorn

    config = Config.load(config_path)
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format,
    )

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
    )


if __name__ == "__main__":
    run()
