"""
Custom Exceptions
=================

Exception hierarchy for the LoRA catalog.

Every error carries an ``ErrorCode`` and a ``details`` mapping with the
paths or names involved. Callers that present errors can tell identity
problems (warnings) from I/O and catalog problems (hard errors) by code
range alone.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Error codes for programmatic error handling."""

    # General errors (1000-1099)
    UNKNOWN_ERROR = 1000
    CONFIGURATION_ERROR = 1001
    FILE_NOT_FOUND = 1002

    # I/O errors (1100-1199)
    IO_FAILURE = 1100
    READ_FAILED = 1101
    WRITE_FAILED = 1102

    # Catalog errors (1200-1299)
    CATALOG_CORRUPTED = 1200

    # Naming errors (1300-1399)
    INVALID_NAME = 1300
    NAME_EMPTY = 1301
    NAME_COLLISION = 1302


class LoraCatalogError(Exception):
    """Base exception for all catalog errors.

    Keyword arguments other than the ones below are context (a file
    path, a record key, an operation name) and land in ``details``;
    ``None`` values are dropped.

    Attributes:
        message: Human-readable error message.
        error_code: Programmatic error code; the class default if omitted.
        details: Context of the failure.
        cause: Original exception, when wrapping one.
    """

    default_code = ErrorCode.UNKNOWN_ERROR

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        **context: Any
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = dict(details or {})
        self.details.update((key, value) for key, value in context.items() if value is not None)
        self.cause = cause

    def __str__(self) -> str:
        result = f"[{self.error_code.name}] {self.message}"
        if self.details:
            context = ", ".join(f"{key}={value}" for key, value in self.details.items())
            result += f" ({context})"
        if self.cause is not None:
            result += f" | Caused by: {type(self.cause).__name__}: {self.cause}"
        return result

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code.value,
            "error_name": self.error_code.name,
            "details": self.details,
            "cause": str(self.cause) if self.cause is not None else None,
        }


class ConfigurationError(LoraCatalogError):
    """Raised for an unreadable config file or an out-of-range setting.

    Context: ``config_key``, ``expected_type``.
    """

    default_code = ErrorCode.CONFIGURATION_ERROR


class NotFoundError(LoraCatalogError):
    """Raised when a file that must exist is missing.

    Fatal to the call that raised it, never to the process.
    Context: ``file_path``.
    """

    default_code = ErrorCode.FILE_NOT_FOUND


class CorruptCatalogError(LoraCatalogError):
    """Raised when the persisted catalog exists but cannot be parsed.

    Examples:
        - Invalid JSON
        - Top-level value is not an object
        - A record is not an object or has wrongly typed fields

    Context: ``catalog_path``, ``record_key``.
    """

    default_code = ErrorCode.CATALOG_CORRUPTED


class InvalidNameError(LoraCatalogError):
    """Raised when a proposed name or path is rejected before any mutation.

    Examples:
        - Empty or whitespace-only name
        - Characters illegal on the host filesystem
        - Target already exists (``NAME_COLLISION``)

    Context: ``name``.
    """

    default_code = ErrorCode.INVALID_NAME


class IOFailureError(LoraCatalogError):
    """Raised for any other read/write failure during scan, save or fingerprint.

    Context: ``file_path``, ``operation``.
    """

    default_code = ErrorCode.IO_FAILURE
