"""Utilities module for the LoRA catalog."""

from .logging_config import setup_logging, get_logger, LoggingConfig, LogContext, Timer
from .exceptions import (
    ErrorCode,
    LoraCatalogError,
    ConfigurationError,
    NotFoundError,
    CorruptCatalogError,
    InvalidNameError,
    IOFailureError,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LoggingConfig",
    "LogContext",
    "Timer",
    "ErrorCode",
    "LoraCatalogError",
    "ConfigurationError",
    "NotFoundError",
    "CorruptCatalogError",
    "InvalidNameError",
    "IOFailureError",
]
