"""
Catalog Models
==============

The catalog record and its stored fingerprint.

A record splits into persistent metadata, written to the catalog file,
and transient state recomputed on every load or reconciliation.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

UNKNOWN_SENTINEL = "unknown"

# JSON keys of the persistent fields, in write order
ACTIVE_TRIGGERS = "active_triggers"
ALL_TRIGGERS = "all_triggers"
FILE_ID = "file_id"
SOURCE_URL = "source_url"
SUGGESTED_STRENGTH = "suggested_strength"
NOTES = "notes"
DESCRIPTION = "description"
GALLERY = "gallery"

KNOWN_KEYS = (
    ACTIVE_TRIGGERS, ALL_TRIGGERS, FILE_ID, SOURCE_URL,
    SUGGESTED_STRENGTH, NOTES, DESCRIPTION, GALLERY,
)


class FingerprintState(Enum):
    """Which of the three shapes a stored fingerprint has."""
    ABSENT = "absent"
    UNSET = "unset"    # the "unknown" sentinel
    VALUE = "value"


@dataclass(frozen=True)
class StoredFingerprint:
    """Fingerprint as persisted in the catalog.

    Absent, explicitly unset ("unknown") and a real value are distinct
    states; an unset fingerprint is not a mismatch.
    """
    state: FingerprintState = FingerprintState.ABSENT
    value: Optional[str] = None

    @classmethod
    def absent(cls) -> "StoredFingerprint":
        return cls(FingerprintState.ABSENT)

    @classmethod
    def unset(cls) -> "StoredFingerprint":
        return cls(FingerprintState.UNSET)

    @classmethod
    def of(cls, value: str) -> "StoredFingerprint":
        """Wrap a real fingerprint value."""
        return cls.parse(value)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "StoredFingerprint":
        """Interpret a raw JSON value."""
        if raw is None or not str(raw).strip():
            return cls.absent()
        if raw == UNKNOWN_SENTINEL:
            return cls.unset()
        return cls(FingerprintState.VALUE, raw)

    @property
    def is_set(self) -> bool:
        """True only for a real fingerprint value."""
        return self.state is FingerprintState.VALUE

    def matches(self, live: Optional[str]) -> bool:
        """True if set and equal to the live fingerprint."""
        return self.is_set and live is not None and self.value == live

    def to_json(self) -> Optional[str]:
        """Raw value to persist; None means the key is omitted."""
        if self.state is FingerprintState.VALUE:
            return self.value
        if self.state is FingerprintState.UNSET:
            return UNKNOWN_SENTINEL
        return None

    def __str__(self) -> str:
        return self.to_json() or "<absent>"


def encode_newlines(text: Optional[str]) -> Optional[str]:
    """Normalize line breaks to ``\\n`` so JSON writes them as an escape."""
    if text is None:
        return None
    return text.replace("\r\n", "\n").replace("\r", "\n")


def blank_to_none(text: Optional[str]) -> Optional[str]:
    """Map whitespace-only text to None."""
    if text is None or not text.strip():
        return None
    return text


@dataclass
class CatalogRecord:
    """Metadata for one cataloged model file.

    Attributes:
        path: Logical path; always equal to the record's catalog key.
        active_triggers: Short trigger text.
        all_triggers: Extended trigger text, may span lines.
        fingerprint: Stored content fingerprint.
        source_url: Where the model was obtained.
        suggested_strength: Free-form strength hint.
        notes: Free-text notes, may span lines.
        description: Short description.
        gallery: Gallery image file names, resolved by the gallery layer.
        extra: Unrecognized JSON keys, written back untouched.
        file_path: Absolute model file path (transient).
        file_exists: Whether the model file existed at last check (transient).
        live_fingerprint: Fingerprint computed at last check (transient).
        fingerprint_valid: Stored fingerprint equals the live one (transient).
        fingerprint_error: Why the live fingerprint could not be computed (transient).
    """
    path: str = ""
    active_triggers: str = ""
    all_triggers: str = ""
    fingerprint: StoredFingerprint = field(default_factory=StoredFingerprint.absent)
    source_url: Optional[str] = None
    suggested_strength: Optional[str] = None
    notes: Optional[str] = None
    description: Optional[str] = None
    gallery: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    file_path: Optional[Path] = field(default=None, compare=False, repr=False)
    file_exists: bool = field(default=False, compare=False)
    live_fingerprint: Optional[str] = field(default=None, compare=False)
    fingerprint_valid: bool = field(default=False, compare=False)
    fingerprint_error: Optional[str] = field(default=None, compare=False, repr=False)

    def refresh_validity(self) -> None:
        """Recompute ``fingerprint_valid`` from the cached live fingerprint."""
        self.fingerprint_valid = self.file_exists and self.fingerprint.matches(self.live_fingerprint)

    def reset_transient(self) -> None:
        """Forget everything learned from the filesystem."""
        self.file_exists = False
        self.live_fingerprint = None
        self.fingerprint_valid = False
        self.fingerprint_error = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the persistent fields only.

        Optional fields holding only whitespace are omitted.
        """
        data: Dict[str, Any] = {
            ACTIVE_TRIGGERS: encode_newlines(self.active_triggers or ""),
            ALL_TRIGGERS: encode_newlines(self.all_triggers or ""),
        }
        stored = self.fingerprint.to_json()
        if stored is not None:
            data[FILE_ID] = stored

        optional = (
            (SOURCE_URL, self.source_url),
            (SUGGESTED_STRENGTH, self.suggested_strength),
            (NOTES, encode_newlines(self.notes)),
            (DESCRIPTION, self.description),
        )
        for key, value in optional:
            value = blank_to_none(value)
            if value is not None:
                data[key] = value

        gallery = [name for name in self.gallery if name and name.strip()]
        if gallery:
            data[GALLERY] = gallery

        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "") -> "CatalogRecord":
        """Create a record from its JSON object.

        Raises:
            TypeError: If a field has the wrong JSON type.
        """
        def text(key: str, required: bool = False) -> Optional[str]:
            value = data.get(key)
            if value is None:
                return "" if required else None
            if not isinstance(value, str):
                raise TypeError(f"field '{key}' must be a string")
            return value

        gallery = data.get(GALLERY) or []
        if not isinstance(gallery, list) or not all(isinstance(name, str) for name in gallery):
            raise TypeError(f"field '{GALLERY}' must be a list of strings")

        return cls(
            path=path,
            active_triggers=text(ACTIVE_TRIGGERS, required=True),
            all_triggers=text(ALL_TRIGGERS, required=True),
            fingerprint=StoredFingerprint.parse(text(FILE_ID)),
            source_url=blank_to_none(text(SOURCE_URL)),
            suggested_strength=blank_to_none(text(SUGGESTED_STRENGTH)),
            notes=blank_to_none(text(NOTES)),
            description=blank_to_none(text(DESCRIPTION)),
            gallery=list(gallery),
            extra={k: v for k, v in data.items() if k not in KNOWN_KEYS},
        )
