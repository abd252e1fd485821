"""
Catalog Store
=============

In-memory map from logical path to catalog record, persisted as a JSON
object. The store is single-writer: callers serialize mutations and
never overlap ``save()`` with ``add``/``remove``.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from lora_catalog.catalog.models import CatalogRecord, StoredFingerprint
from lora_catalog.discovery.scanner import DEFAULT_EXTENSION, resolve_model_file
from lora_catalog.identity.fingerprint import ContentFingerprinter
from lora_catalog.utils.logging_config import get_logger, Timer
from lora_catalog.utils.exceptions import (
    CorruptCatalogError,
    IOFailureError,
    LoraCatalogError,
    NotFoundError,
    ErrorCode,
)

logger = get_logger(__name__)


class CatalogStore:
    """Persisted catalog of model metadata.

    On load every record's transient fields are recomputed from the
    filesystem; nothing transient is trusted from a previous session.
    """

    def __init__(
        self,
        catalog_path: Union[str, Path],
        models_directory: Union[str, Path],
        extension: str = DEFAULT_EXTENSION,
        fingerprinter: Optional[ContentFingerprinter] = None,
        indent: int = 2,
    ):
        """Initialize the store.

        Args:
            catalog_path: JSON file backing the catalog.
            models_directory: Root directory of the model files.
            extension: Model file extension.
            fingerprinter: Fingerprinter for live identity checks.
            indent: JSON indentation used when saving.
        """
        self.catalog_path = Path(catalog_path)
        self.models_directory = Path(models_directory)
        self.extension = extension if extension.startswith(".") else "." + extension
        self.fingerprinter = fingerprinter or ContentFingerprinter()
        self.indent = indent
        self._records: Dict[str, CatalogRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, path: object) -> bool:
        return path in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths())

    def full_path_for(self, logical_path: str) -> Path:
        """Return the model file location of a logical path.

        An existing file whose extension differs only in case is found too.
        """
        return resolve_model_file(self.models_directory, logical_path, self.extension)

    def load(self) -> None:
        """Load the catalog from disk.

        A missing file gives an empty catalog. On a parse failure the
        in-memory state is left untouched.

        Raises:
            CorruptCatalogError: If the file exists but cannot be parsed.
            IOFailureError: If the file exists but cannot be read.
        """
        if not self.catalog_path.exists():
            logger.warning(f"Catalog not found at {self.catalog_path}, starting empty")
            self._records = {}
            return

        with Timer(logger, "catalog_load"):
            try:
                with open(self.catalog_path, "r", encoding="utf-8-sig") as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise CorruptCatalogError(
                    f"Catalog is not valid JSON: {e.msg} (line {e.lineno})",
                    catalog_path=str(self.catalog_path),
                    cause=e,
                ) from e
            except UnicodeDecodeError as e:
                raise CorruptCatalogError(
                    "Catalog is not valid UTF-8",
                    catalog_path=str(self.catalog_path),
                    cause=e,
                ) from e
            except OSError as e:
                raise IOFailureError(
                    f"Cannot read catalog: {e}",
                    file_path=str(self.catalog_path),
                    operation="load",
                    error_code=ErrorCode.READ_FAILED,
                    cause=e,
                ) from e

            records = self._parse(data)
            for record in records.values():
                self._refresh_record(record)
            self._records = records

        logger.info(f"Loaded {len(self._records)} catalog records from {self.catalog_path}")

    def _parse(self, data: object) -> Dict[str, CatalogRecord]:
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CorruptCatalogError(
                "Catalog root must be a JSON object",
                catalog_path=str(self.catalog_path),
            )

        records: Dict[str, CatalogRecord] = {}
        for key, value in data.items():
            if not isinstance(value, dict):
                raise CorruptCatalogError(
                    "Catalog record must be a JSON object",
                    catalog_path=str(self.catalog_path),
                    record_key=key,
                )
            try:
                records[key] = CatalogRecord.from_dict(value, path=key)
            except TypeError as e:
                raise CorruptCatalogError(
                    f"Malformed catalog record: {e}",
                    catalog_path=str(self.catalog_path),
                    record_key=key,
                    cause=e,
                ) from e
        return records

    def _refresh_record(self, record: CatalogRecord) -> None:
        """Recompute existence and live fingerprint of one record.

        Read failures are kept on the record instead of aborting the load.
        """
        record.reset_transient()
        record.file_path = self.full_path_for(record.path)
        record.file_exists = record.file_path.is_file()
        if not record.file_exists:
            return

        try:
            record.live_fingerprint = self.fingerprinter.compute(record.file_path)
        except NotFoundError:
            record.file_exists = False
        except LoraCatalogError as e:
            record.fingerprint_error = e.message
            logger.warning(
                f"Cannot fingerprint {record.path}: {e.message}",
                extra={"logical_path": record.path},
            )
        record.refresh_validity()

    def refresh(self, path: str) -> Optional[CatalogRecord]:
        """Recompute the transient fields of one record, if present."""
        record = self._records.get(path)
        if record is not None:
            self._refresh_record(record)
        return record

    def save(self) -> None:
        """Write the catalog to disk.

        Only persistent fields are written. Data goes to a temporary file
        in the same directory which then replaces the catalog, so an
        interrupted save leaves the previous version intact.

        Raises:
            IOFailureError: If the catalog cannot be written.
        """
        payload = {path: record.to_dict() for path, record in self._records.items()}

        with Timer(logger, "catalog_save"):
            tmp_name = None
            try:
                self.catalog_path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=self.catalog_path.name + ".",
                    suffix=".tmp",
                    dir=str(self.catalog_path.parent),
                )
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, ensure_ascii=False, indent=self.indent)
                    handle.write("\n")
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_name, self.catalog_path)
                tmp_name = None
            except OSError as e:
                raise IOFailureError(
                    f"Cannot save catalog: {e}",
                    file_path=str(self.catalog_path),
                    operation="save",
                    error_code=ErrorCode.WRITE_FAILED,
                    cause=e,
                ) from e
            finally:
                if tmp_name is not None:
                    Path(tmp_name).unlink(missing_ok=True)

        logger.info(f"Saved {len(payload)} catalog records to {self.catalog_path}")

    def get(self, path: str) -> Optional[CatalogRecord]:
        """Look up a record without side effects."""
        return self._records.get(path)

    def add(self, path: str, record: CatalogRecord) -> CatalogRecord:
        """Insert or overwrite the record stored under ``path``.

        The record's own path and file location are stamped to match.
        """
        record.path = path
        record.file_path = self.full_path_for(path)
        self._records[path] = record
        logger.info(f"Catalog record added: {path}", extra={"logical_path": path})
        return record

    def remove(self, path: str) -> Optional[CatalogRecord]:
        """Remove a record; absent keys are ignored."""
        record = self._records.pop(path, None)
        if record is not None:
            logger.info(f"Catalog record removed: {path}", extra={"logical_path": path})
        return record

    def update_fingerprint(self, path: str, new_fingerprint: Union[str, StoredFingerprint]) -> bool:
        """Store a new fingerprint and recompute validity.

        Validity is judged against the live fingerprint already cached on
        the record; no file is read.

        Returns:
            False when no record exists under ``path``.
        """
        record = self._records.get(path)
        if record is None:
            logger.debug(f"update_fingerprint ignored, no record for {path}")
            return False

        if not isinstance(new_fingerprint, StoredFingerprint):
            new_fingerprint = StoredFingerprint.parse(new_fingerprint)
        record.fingerprint = new_fingerprint
        record.refresh_validity()
        logger.info(
            f"Fingerprint updated for {path}: {new_fingerprint}",
            extra={"logical_path": path},
        )
        return True

    def paths(self) -> List[str]:
        """All cataloged logical paths, sorted."""
        return sorted(self._records)

    def records(self) -> List[CatalogRecord]:
        """All records, sorted by logical path."""
        return [self._records[path] for path in self.paths()]

    def paths_under(self, folder: str) -> List[str]:
        """Cataloged paths inside ``folder`` (recursively)."""
        prefix = folder.rstrip("/") + "/"
        return [path for path in self.paths() if path.startswith(prefix)]
