"""Configuration module for the LoRA catalog."""

from .settings import (
    Config,
    LibraryConfig,
    CatalogConfig,
    FingerprintConfig,
    WatcherConfig,
    DEFAULT_CHUNK_SIZE,
)

__all__ = [
    "Config",
    "LibraryConfig",
    "CatalogConfig",
    "FingerprintConfig",
    "WatcherConfig",
    "DEFAULT_CHUNK_SIZE",
]
