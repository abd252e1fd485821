"""Monitoring module for library change events."""

from .watcher import LibraryWatcher, LibraryEventHandler, DebouncedCallback

__all__ = [
    "LibraryWatcher",
    "LibraryEventHandler",
    "DebouncedCallback",
]
