"""
Logging Configuration
=====================

All ``lora_catalog`` modules log through one package logger. The console
gets short human-readable lines; the optional log file gets one JSON
object per record so a reconciliation run can be traced afterwards.

Records may carry structured fields (``logical_path``, ``operation``,
...) either through ``extra=`` or through a surrounding ``LogContext``.
Both formatters render them, together with a per-thread correlation id.
"""

import json
import logging
import logging.handlers
import sys
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


ROOT_LOGGER_NAME = "lora_catalog"

# Structured fields picked up from records and from LogContext
CONTEXT_FIELDS = ("command", "logical_path", "file_path", "operation", "duration_ms", "state")

_thread_local = threading.local()


def get_correlation_id() -> str:
    """Return the correlation id of the current thread, creating one if needed."""
    correlation_id = getattr(_thread_local, "correlation_id", None)
    if correlation_id is None:
        correlation_id = uuid.uuid4().hex[:8]
        _thread_local.correlation_id = correlation_id
    return correlation_id


def _context_stack() -> list:
    stack = getattr(_thread_local, "context_stack", None)
    if stack is None:
        stack = _thread_local.context_stack = []
    return stack


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect structured fields for a record.

    Fields passed with ``extra=`` win over those of an enclosing
    ``LogContext``.
    """
    fields: Dict[str, Any] = {}
    for context in _context_stack():
        fields.update(context)
    for name in CONTEXT_FIELDS:
        if hasattr(record, name):
            fields[name] = getattr(record, name)
    return fields


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }
        log_data.update(record_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter.

    Colors are only emitted when ``use_color`` is set, which
    ``setup_logging`` does for terminals.
    """

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')

        msg = f"[{timestamp}] {level} [{get_correlation_id()}] {record.name}: {record.getMessage()}"

        command = record_context(record).get("command")
        if command:
            msg = f"{msg} <{command}>"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)
        return msg


@dataclass
class LoggingConfig:
    """Configuration for the logging system.

    Attributes:
        level: Level name for the package logger.
        log_dir: Directory of the rotating JSON log file.
        console_output: Log to stderr.
        file_output: Log to ``log_dir``.
        json_format: Use JSON on the console too.
        max_file_size: Rotation threshold in bytes.
        backup_count: Rotated files to keep.
    """
    level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path.home() / ".lora_catalog" / "logs")
    console_output: bool = True
    file_output: bool = True
    json_format: bool = False
    max_file_size: int = 5 * 1024 * 1024  # 5MB
    backup_count: int = 3


def setup_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """Install handlers on the package logger, replacing earlier ones.

    Args:
        config: Logging configuration. Uses defaults if not provided.

    Returns:
        The package logger.
    """
    if config is None:
        config = LoggingConfig()

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, config.level.upper()))
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()

    if config.console_output:
        stream = sys.stderr
        console_handler = logging.StreamHandler(stream)
        if config.json_format:
            console_handler.setFormatter(JSONFormatter())
        else:
            console_handler.setFormatter(ConsoleFormatter(use_color=stream.isatty()))
        package_logger.addHandler(console_handler)

    if config.file_output:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_dir / "lora_catalog.log",
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(JSONFormatter())
        package_logger.addHandler(file_handler)

    package_logger.propagate = False
    return package_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger below the package logger.

    Args:
        name: Name of the module (typically __name__).
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


class LogContext:
    """Attach structured fields to every record the current thread logs.

    Contexts nest; inner values shadow outer ones until the inner
    context exits.
    """

    def __init__(self, logger: logging.Logger, **context):
        """Initialize with context fields.

        Args:
            logger: Logger the context is announced on at DEBUG level.
            **context: Field values, normally from ``CONTEXT_FIELDS``.
        """
        self.logger = logger
        self.context = context

    def __enter__(self):
        _context_stack().append(self.context)
        self.logger.debug(f"Entering context {self.context}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        stack = _context_stack()
        if stack and stack[-1] is self.context:
            stack.pop()
        return False


class Timer:
    """Context manager for timing operations and logging duration."""

    def __init__(self, logger: logging.Logger, operation: str):
        """Initialize timer.

        Args:
            logger: Logger to log the duration to.
            operation: Name of the operation being timed.
        """
        self.logger = logger
        self.operation = operation
        self.start_time = None
        self.duration_ms = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = round((time.perf_counter() - self.start_time) * 1000, 2)
        outcome = "failed" if exc_type else "completed"
        self.logger.debug(
            f"Operation {outcome}: {self.operation} ({self.duration_ms} ms)",
            extra={"operation": self.operation, "duration_ms": self.duration_ms},
        )
        return False
