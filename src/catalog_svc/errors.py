"""Error taxonomy for the catalog service."""

from __future__ import annotations


class CatalogError(Exception):
    """
    Base class for every catalog failure.

    Carries the operation that failed and the id/key involved so callers
    (and the HTTP layer) can report something actionable.
    """
    kind = "CatalogError"

    def __init__(self, message: str, operation: str | None = None, key: str | None = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


class DuplicateIdError(CatalogError):
    """Raised when a caller-supplied id is live or was retired."""
    kind = "DuplicateId"


class NotFoundError(CatalogError):
    """Raised when an item or asset does not exist."""
    kind = "NotFound"


class InvalidFieldError(CatalogError):
    """Raised when a field value violates an item invariant."""
    kind = "InvalidField"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        key: str | None = None,
        field: str | None = None,
    ):
        super().__init__(message, operation=operation, key=key)
        self.field = field


class AlreadyLinkedError(CatalogError):
    """Raised when an asset key or item already carries a link."""
    kind = "AlreadyLinked"


class StaleAssetLinkError(CatalogError):
    """Raised when a link completes against a record that no longer exists."""
    kind = "StaleAssetLink"


class CollaboratorUnavailableError(CatalogError):
    """Raised when the blob store or persistence backend fails."""
    kind = "CollaboratorUnavailable"
