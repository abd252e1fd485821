"""
Path Scanner
============

Walks the models directory and produces the set of logical paths:
relative, extension-stripped, always ``/``-separated.
"""

from pathlib import Path
from typing import List, Optional, Union
import os

from lora_catalog.utils.logging_config import get_logger, Timer
from lora_catalog.utils.exceptions import IOFailureError, ErrorCode

logger = get_logger(__name__)

DEFAULT_EXTENSION = ".safetensors"


def to_logical_path(relative: Union[str, Path], extension: Optional[str] = None) -> str:
    """Convert a root-relative file path to its logical path.

    Args:
        relative: Path relative to the models directory.
        extension: Extension to strip, matched case-insensitively.

    Returns:
        The ``/``-separated logical path.
    """
    text = str(relative).replace("\\", "/")
    if extension and text.lower().endswith(extension.lower()):
        text = text[:-len(extension)]
    return text.strip("/")


def resolve_model_file(root_dir: Union[str, Path], logical_path: str, extension: str) -> Path:
    """Locate the file behind a logical path.

    The extension is matched case-insensitively, like the scan does, so
    ``Cel`` resolves to ``Cel.SAFETENSORS`` when that is the file on disk.
    The name itself must match exactly. When no file exists the path with
    the configured extension is returned, e.g. as a rename or copy target.
    """
    parts = logical_path.split("/")
    leaf = parts[-1]
    candidate = Path(root_dir).joinpath(*parts[:-1], leaf + extension)
    if candidate.is_file():
        return candidate

    try:
        entries = sorted(os.listdir(candidate.parent))
    except OSError:
        return candidate

    for name in entries:
        if name[:len(leaf)] == leaf and name[len(leaf):].lower() == extension.lower():
            if (candidate.parent / name).is_file():
                return candidate.parent / name
    return candidate


class PathScanner:
    """Finds every model file below a root directory.

    The scanner keeps no cache. Callers re-scan after any add, delete,
    rename or move to see the live state.
    """

    def __init__(self, extension: str = DEFAULT_EXTENSION):
        """Initialize the scanner.

        Args:
            extension: Model file extension, with or without the leading dot.
        """
        if not extension.startswith("."):
            extension = "." + extension
        self.extension = extension
        self._extension_lower = extension.lower()

    def scan(self, root_dir: Union[str, Path]) -> List[str]:
        """Scan for model files.

        Args:
            root_dir: Directory to search recursively.

        Returns:
            Sorted, de-duplicated logical paths. Empty if ``root_dir``
            does not exist.

        Raises:
            IOFailureError: If a directory cannot be listed.
        """
        root_dir = Path(root_dir)
        if not root_dir.is_dir():
            logger.debug(f"Models directory does not exist: {root_dir}")
            return []

        found = set()
        with Timer(logger, "scan"):
            for dirpath, _dirnames, filenames in os.walk(root_dir, onerror=self._raise_walk_error):
                for filename in filenames:
                    if not filename.lower().endswith(self._extension_lower):
                        continue
                    if len(filename) == len(self.extension):
                        # a bare ".safetensors" has no logical name
                        continue
                    relative = Path(dirpath, filename).relative_to(root_dir)
                    found.add(to_logical_path(relative.as_posix(), self.extension))

        paths = sorted(found)
        logger.debug(f"Scanned {root_dir}: {len(paths)} model files")
        return paths

    def scan_directories(self, root_dir: Union[str, Path]) -> List[str]:
        """List every directory below ``root_dir`` as a logical folder path.

        Empty folders are included; they still appear in the navigation tree.
        """
        root_dir = Path(root_dir)
        if not root_dir.is_dir():
            return []

        folders = []
        for dirpath, dirnames, _filenames in os.walk(root_dir, onerror=self._raise_walk_error):
            for dirname in dirnames:
                relative = Path(dirpath, dirname).relative_to(root_dir)
                folders.append(relative.as_posix())
        return sorted(folders)

    def full_path(self, root_dir: Union[str, Path], logical_path: str) -> Path:
        """Return the on-disk path of a logical path."""
        return resolve_model_file(root_dir, logical_path, self.extension)

    @staticmethod
    def _raise_walk_error(error: OSError) -> None:
        raise IOFailureError(
            f"Cannot list directory: {error}",
            file_path=getattr(error, "filename", None),
            operation="scan",
            error_code=ErrorCode.READ_FAILED,
            cause=error,
        ) from error


def scan(root_dir: Union[str, Path], extension: str = DEFAULT_EXTENSION) -> List[str]:
    """Scan ``root_dir`` for model files with ``extension``."""
    return PathScanner(extension).scan(root_dir)
