"""Capability check for catalog writes."""

from .config import AuthConfig
from .capability import check_write_capability

__all__ = [
    "AuthConfig",
    "check_write_capability",
]
