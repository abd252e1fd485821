"""
Library Watcher
===============

Watches the models directory and tells the caller when its contents
changed so it can re-scan. Bursts of events (a copy in progress, a
folder move) collapse into one notification after a quiet period.
"""

import threading
from pathlib import Path
from typing import Callable, Optional, Union

from watchdog.observers import Observer
from watchdog.events import FileSystemEvent, FileSystemEventHandler

from lora_catalog.discovery.scanner import DEFAULT_EXTENSION
from lora_catalog.utils.logging_config import get_logger
from lora_catalog.utils.exceptions import NotFoundError

logger = get_logger(__name__)


class DebouncedCallback:
    """Runs a callback once, ``delay`` seconds after the last trigger."""

    def __init__(self, callback: Callable[[], None], delay: float = 1.0):
        """Initialize the debouncer.

        Args:
            callback: Function to call when events settle.
            delay: Quiet period in seconds.
        """
        self.callback = callback
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    def trigger(self) -> None:
        """Restart the quiet-period countdown."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Drop any pending notification."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        try:
            self.callback()
        except Exception:
            logger.exception("Library change callback failed")


class LibraryEventHandler(FileSystemEventHandler):
    """Filters watchdog events down to model files and folders."""

    def __init__(self, debouncer: DebouncedCallback, extension: str = DEFAULT_EXTENSION):
        super().__init__()
        self.debouncer = debouncer
        self.extension = extension.lower()

    def is_relevant(self, event: FileSystemEvent) -> bool:
        """Model files and directories matter; everything else is noise."""
        if event.event_type in ("opened", "closed", "closed_no_write"):
            return False
        if event.is_directory:
            return event.event_type != "modified"

        paths = [event.src_path, getattr(event, "dest_path", "")]
        return any(
            str(path).lower().endswith(self.extension)
            for path in paths if path
        )

    def on_any_event(self, event: FileSystemEvent) -> None:
        if self.is_relevant(event):
            logger.debug(f"Library change: {event.event_type} {event.src_path}")
            self.debouncer.trigger()


class LibraryWatcher:
    """Watches the models directory recursively.

    The watcher keeps no state about the library; ``on_change`` is
    expected to re-scan and rebuild whatever depends on it.
    """

    def __init__(
        self,
        models_directory: Union[str, Path],
        on_change: Callable[[], None],
        extension: str = DEFAULT_EXTENSION,
        debounce_seconds: float = 1.0
    ):
        """Initialize the watcher.

        Args:
            models_directory: Directory to watch.
            on_change: Called after changes settle.
            extension: Model file extension.
            debounce_seconds: Quiet period before ``on_change`` runs.
        """
        self.models_directory = Path(models_directory)
        self.debouncer = DebouncedCallback(on_change, debounce_seconds)
        self.handler = LibraryEventHandler(self.debouncer, extension)
        self.observer = Observer()
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._running and self.observer.is_alive()

    def start(self) -> None:
        """Start watching.

        Raises:
            NotFoundError: If the models directory does not exist.
        """
        if not self.models_directory.is_dir():
            raise NotFoundError(
                "Models directory does not exist",
                file_path=str(self.models_directory),
            )

        self.observer.schedule(self.handler, str(self.models_directory), recursive=True)
        self.observer.start()
        self._running = True
        logger.info(f"Watching library: {self.models_directory}")

    def stop(self) -> None:
        """Stop watching and drop pending notifications."""
        if self._running:
            self._running = False
            self.debouncer.cancel()
            self.observer.stop()
            self.observer.join(timeout=5.0)
            logger.info("Library watcher stopped")
