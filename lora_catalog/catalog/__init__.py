"""Catalog module: records and their persistence."""

from .models import (
    CatalogRecord,
    StoredFingerprint,
    FingerprintState,
    UNKNOWN_SENTINEL,
    encode_newlines,
)
from .store import CatalogStore

__all__ = [
    "CatalogRecord",
    "StoredFingerprint",
    "FingerprintState",
    "UNKNOWN_SENTINEL",
    "encode_newlines",
    "CatalogStore",
]
