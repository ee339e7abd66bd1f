"""Write capability check for the HTTP boundary."""

from __future__ import annotations

import hmac
import logging

from fastapi import HTTPException, Request

from .config import AuthConfig

logger = logging.getLogger(__name__)


def check_write_capability(request: Request, config: AuthConfig) -> str:
    """
    Verify the caller may mutate the catalog.

    Returns the actor name recorded in the audit log. Raises 401 when the
    key is missing and 403 when it is not one of the configured keys.
    """
    if not config.enabled:
        return "anonymous"

    presented = request.headers.get(config.header)
    if not presented:
        raise HTTPException(status_code=401, detail=f"Missing {config.header} header")

    for key in config.api_keys:
        if hmac.compare_digest(presented.encode("utf-8"), key.encode("utf-8")):
            return f"key:{presented[:6]}..."

    logger.warning(f"Rejected write from {request.client.host if request.client else 'unknown'}: unknown key")
    raise HTTPException(status_code=403, detail="API key does not grant write access")
