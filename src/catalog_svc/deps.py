"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from .auth.capability import check_write_capability
from .service import CatalogService


def get_service(request: Request) -> CatalogService:
    """The CatalogService built at startup and kept on app.state."""
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Catalog service not initialized")
    return service


def get_actor(request: Request, service: CatalogService = Depends(get_service)) -> str:
    """Run the write capability check; returns the actor for the audit log."""
    return check_write_capability(request, service.config.auth)
