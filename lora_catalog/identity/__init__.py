"""Content identity module."""

from .fingerprint import (
    ContentFingerprinter,
    fingerprint,
    is_fingerprint,
    FINGERPRINT_LENGTH,
)

__all__ = [
    "ContentFingerprinter",
    "fingerprint",
    "is_fingerprint",
    "FINGERPRINT_LENGTH",
]
