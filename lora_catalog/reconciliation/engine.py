"""
Reconciliation Engine
=====================

Combines the file on disk, the catalog record and a fresh fingerprint
into one validity verdict for a logical path.

Existence is checked before identity: a missing file wins over a missing
record, which wins over any fingerprint comparison. Verdicts are never
cached; every call reads the filesystem again.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional

from lora_catalog.catalog.models import CatalogRecord, StoredFingerprint
from lora_catalog.catalog.store import CatalogStore
from lora_catalog.discovery.scanner import PathScanner
from lora_catalog.identity.fingerprint import ContentFingerprinter
from lora_catalog.utils.logging_config import get_logger
from lora_catalog.utils.exceptions import NotFoundError

logger = get_logger(__name__)


class ValidityState(Enum):
    """Outcome of reconciling one logical path."""
    MISSING_ENTRY_FILE_EXISTS = "missing_entry_file_exists"
    FILE_MISSING = "file_missing"
    ID_UNSET = "id_unset"
    ID_MISMATCH = "id_mismatch"
    VALID = "valid"
    NEW_UNCATALOGED = "new_uncataloged"  # neither file nor record; creation precondition


ACCEPTABLE_STATES = frozenset({
    ValidityState.MISSING_ENTRY_FILE_EXISTS,
    ValidityState.ID_UNSET,
    ValidityState.ID_MISMATCH,
})


@dataclass
class Verdict:
    """Result of reconciling a logical path.

    Attributes:
        logical_path: The path that was evaluated.
        state: Validity state.
        file_path: Expected model file location.
        record: Catalog record, if one exists.
        live_fingerprint: Freshly computed fingerprint, when the file was read.
    """
    logical_path: str
    state: ValidityState
    file_path: Path
    record: Optional[CatalogRecord] = None
    live_fingerprint: Optional[str] = None

    @property
    def stored_fingerprint(self) -> StoredFingerprint:
        if self.record is None:
            return StoredFingerprint.absent()
        return self.record.fingerprint

    @property
    def is_valid(self) -> bool:
        return self.state is ValidityState.VALID

    @property
    def can_accept(self) -> bool:
        """Whether accepting the live fingerprint would make the path valid."""
        return self.state in ACCEPTABLE_STATES

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "logical_path": self.logical_path,
            "state": self.state.value,
            "file_path": str(self.file_path),
            "has_record": self.record is not None,
            "stored_fingerprint": self.stored_fingerprint.to_json(),
            "live_fingerprint": self.live_fingerprint,
        }


class ReconciliationEngine:
    """Produces verdicts and applies the one mutating transition.

    The only mutation is accepting the live fingerprint as the stored
    one. Persisting the catalog afterwards is left to the caller.
    """

    def __init__(
        self,
        store: CatalogStore,
        fingerprinter: Optional[ContentFingerprinter] = None
    ):
        """Initialize the engine.

        Args:
            store: Catalog holding the records.
            fingerprinter: Defaults to the store's fingerprinter.
        """
        self.store = store
        self.fingerprinter = fingerprinter or store.fingerprinter

    def evaluate(self, logical_path: str) -> Verdict:
        """Reconcile one logical path without mutating anything.

        Raises:
            IOFailureError: If the file exists but cannot be read. A read
                failure is never reported as a mismatch.
        """
        file_path = self.store.full_path_for(logical_path)
        record = self.store.get(logical_path)

        if not file_path.is_file():
            return self._missing(logical_path, file_path, record)

        try:
            live = self.fingerprinter.compute(file_path)
        except NotFoundError:
            logger.debug(f"File vanished during fingerprinting: {logical_path}")
            return self._missing(logical_path, file_path, record)

        if record is None:
            state = ValidityState.MISSING_ENTRY_FILE_EXISTS
        elif not record.fingerprint.is_set:
            state = ValidityState.ID_UNSET
        elif record.fingerprint.value != live:
            state = ValidityState.ID_MISMATCH
        else:
            state = ValidityState.VALID

        logger.debug(
            f"Verdict for {logical_path}: {state.value}",
            extra={"logical_path": logical_path, "state": state.value},
        )
        return Verdict(
            logical_path=logical_path,
            state=state,
            file_path=file_path,
            record=record,
            live_fingerprint=live,
        )

    @staticmethod
    def _missing(
        logical_path: str,
        file_path: Path,
        record: Optional[CatalogRecord]
    ) -> Verdict:
        state = ValidityState.FILE_MISSING if record is not None else ValidityState.NEW_UNCATALOGED
        return Verdict(logical_path=logical_path, state=state, file_path=file_path, record=record)

    def accept_live_fingerprint(
        self,
        logical_path: str,
        template: Optional[CatalogRecord] = None
    ) -> Verdict:
        """Store the live fingerprint so the path becomes valid.

        Creates the record first when none exists, from ``template`` or an
        empty record.

        Raises:
            NotFoundError: If the model file does not exist.
            IOFailureError: If the file cannot be read.
        """
        verdict = self.evaluate(logical_path)

        if verdict.state in (ValidityState.FILE_MISSING, ValidityState.NEW_UNCATALOGED):
            raise NotFoundError(
                "Cannot accept a fingerprint for a missing file",
                file_path=str(verdict.file_path),
            )
        if verdict.state is ValidityState.VALID:
            record = verdict.record
            record.file_exists = True
            record.live_fingerprint = verdict.live_fingerprint
            record.fingerprint_error = None
            record.refresh_validity()
            return verdict

        record = verdict.record
        if record is None:
            record = self.store.add(logical_path, template or CatalogRecord())

        record.file_exists = True
        record.live_fingerprint = verdict.live_fingerprint
        record.fingerprint_error = None
        self.store.update_fingerprint(logical_path, StoredFingerprint.of(verdict.live_fingerprint))

        logger.info(
            f"Accepted fingerprint for {logical_path} (was {verdict.state.value})",
            extra={"logical_path": logical_path, "state": ValidityState.VALID.value},
        )
        return Verdict(
            logical_path=logical_path,
            state=ValidityState.VALID,
            file_path=verdict.file_path,
            record=record,
            live_fingerprint=verdict.live_fingerprint,
        )

    def register(self, logical_path: str, record: Optional[CatalogRecord] = None) -> Verdict:
        """Catalog a file that a download, copy or import just produced."""
        return self.accept_live_fingerprint(logical_path, template=record)

    def evaluate_all(
        self,
        scanned_paths: Optional[Iterable[str]] = None,
        scanner: Optional[PathScanner] = None
    ) -> List[Verdict]:
        """Reconcile every cataloged and every scanned path.

        Args:
            scanned_paths: Paths found on disk; scanned when omitted.
            scanner: Scanner to use when ``scanned_paths`` is omitted.
        """
        if scanned_paths is None:
            scanner = scanner or PathScanner(self.store.extension)
            scanned_paths = scanner.scan(self.store.models_directory)

        universe = sorted(set(scanned_paths) | set(self.store.paths()))
        return [self.evaluate(path) for path in universe]
