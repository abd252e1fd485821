"""
Content Fingerprint
===================

Partial-content SHA-1 identity for multi-gigabyte model files.

The digest covers the decimal file size, the first chunk of the file and,
for files larger than one chunk, the last chunk. The result must match
other tools that read the same catalog, so the byte order fed to the hash
is fixed: size string, head, tail.
"""

from pathlib import Path
from typing import Union
import hashlib
import re

from lora_catalog.config.settings import DEFAULT_CHUNK_SIZE
from lora_catalog.utils.logging_config import get_logger
from lora_catalog.utils.exceptions import NotFoundError, IOFailureError, ErrorCode

logger = get_logger(__name__)

FINGERPRINT_LENGTH = 40
_FINGERPRINT_RE = re.compile(r"^[0-9a-f]{40}$")


def is_fingerprint(value: object) -> bool:
    """Return True if ``value`` is a well-formed fingerprint string."""
    return isinstance(value, str) and bool(_FINGERPRINT_RE.match(value))


class ContentFingerprinter:
    """Computes the partial-content fingerprint of a file.

    Only the head and tail of large files are read, which keeps the cost
    bounded while still catching truncation, header corruption and
    trailer corruption. Instances hold no state besides the chunk size
    and are safe to share between threads.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """Initialize the fingerprinter.

        Args:
            chunk_size: Bytes hashed from each end of the file.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size

    def compute(self, file_path: Union[str, Path]) -> str:
        """Compute the fingerprint of a file.

        Args:
            file_path: Path to the file.

        Returns:
            40-character lowercase hexadecimal SHA-1 digest.

        Raises:
            NotFoundError: If the file does not exist or vanishes mid-read.
            IOFailureError: If the file exists but cannot be read.
        """
        file_path = Path(file_path)

        try:
            stat = file_path.stat()
        except FileNotFoundError as e:
            raise NotFoundError(
                "File not found", file_path=str(file_path), cause=e
            ) from e
        except OSError as e:
            raise IOFailureError(
                f"Cannot stat file: {e}",
                file_path=str(file_path),
                operation="fingerprint",
                error_code=ErrorCode.READ_FAILED,
                cause=e,
            ) from e

        if not file_path.is_file():
            raise NotFoundError("Not a regular file", file_path=str(file_path))

        file_size = stat.st_size
        hasher = hashlib.sha1()
        hasher.update(str(file_size).encode("utf-8"))

        try:
            with open(file_path, "rb") as f:
                hasher.update(self._read_exact(f, self.chunk_size))

                if file_size > self.chunk_size:
                    f.seek(file_size - self.chunk_size)
                    hasher.update(self._read_exact(f, self.chunk_size))
        except FileNotFoundError as e:
            raise NotFoundError(
                "File disappeared while fingerprinting",
                file_path=str(file_path),
                cause=e,
            ) from e
        except OSError as e:
            raise IOFailureError(
                f"Cannot read file: {e}",
                file_path=str(file_path),
                operation="fingerprint",
                error_code=ErrorCode.READ_FAILED,
                cause=e,
            ) from e

        digest = hasher.hexdigest()
        logger.debug(f"Fingerprint {digest} for {file_path.name} ({file_size} bytes)")
        return digest

    @staticmethod
    def _read_exact(handle, size: int) -> bytes:
        """Read up to ``size`` bytes, looping over short reads until EOF."""
        chunks = []
        remaining = size
        while remaining > 0:
            data = handle.read(remaining)
            if not data:
                break
            chunks.append(data)
            remaining -= len(data)
        return b"".join(chunks)


_default_fingerprinter = ContentFingerprinter()


def fingerprint(file_path: Union[str, Path]) -> str:
    """Compute the standard 1 MiB head/tail fingerprint of a file."""
    return _default_fingerprinter.compute(file_path)
