"""
File Operations
===============

Rename, move, delete, create and import operations on the model library.

Every operation validates names and targets before touching the disk.
A logical path is never renamed in place: the record is removed and
re-added under its new key, and its gallery names follow.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union
import re
import shutil

from lora_catalog.actions.gallery import GalleryManager
from lora_catalog.catalog.store import CatalogStore
from lora_catalog.discovery.scanner import PathScanner
from lora_catalog.utils.logging_config import get_logger
from lora_catalog.utils.exceptions import (
    InvalidNameError,
    IOFailureError,
    NotFoundError,
    ErrorCode,
)

logger = get_logger(__name__)

# Characters rejected by at least one common host filesystem
_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def validate_segment(name: Optional[str]) -> str:
    """Check a single file or folder name.

    Returns:
        The name, unchanged.

    Raises:
        InvalidNameError: If the name is empty or contains illegal characters.
    """
    if name is None or not name.strip():
        raise InvalidNameError("Name cannot be empty", name=name, error_code=ErrorCode.NAME_EMPTY)
    if name in (".", ".."):
        raise InvalidNameError("Name cannot be '.' or '..'", name=name)
    if _INVALID_NAME_CHARS.search(name):
        raise InvalidNameError("Name contains invalid characters", name=name)
    return name


def validate_folder_path(folder: str) -> str:
    """Check every segment of a logical folder path; "" is the library root."""
    folder = folder.strip("/")
    if folder:
        for segment in folder.split("/"):
            validate_segment(segment)
    return folder


def join_logical(folder: str, name: str) -> str:
    return f"{folder}/{name}" if folder else name


@dataclass
class OperationResult:
    """Outcome of a file operation.

    Attributes:
        new_path: Logical path after the operation, if any.
        affected_count: Number of model files touched.
        catalog_changed: Whether catalog records were re-keyed or removed.
    """
    new_path: Optional[str] = None
    affected_count: int = 0
    catalog_changed: bool = False


class FileOperations:
    """Library operations that keep the catalog and gallery in step.

    The catalog is saved after every operation that changed a record.
    """

    def __init__(
        self,
        store: CatalogStore,
        gallery: GalleryManager,
        scanner: Optional[PathScanner] = None
    ):
        """Initialize file operations.

        Args:
            store: Catalog to update.
            gallery: Gallery whose image names follow renames.
            scanner: Scanner used to list files inside folders.
        """
        self.store = store
        self.gallery = gallery
        self.scanner = scanner or PathScanner(store.extension)

    @property
    def models_directory(self) -> Path:
        return self.store.models_directory

    def _folder_full_path(self, folder: str) -> Path:
        if not folder:
            return self.models_directory
        return self.models_directory.joinpath(*folder.split("/"))

    def _rekey(self, old_path: str, new_path: str) -> bool:
        """Move a record to a new key, rewriting its gallery names."""
        record = self.store.remove(old_path)
        if record is None:
            return False
        if record.gallery:
            self.gallery.rename_images(old_path, new_path, record)
        self.store.add(new_path, record)
        return True

    def _paths_in_folder(
        self,
        folder: str,
        all_paths: Optional[Iterable[str]],
        include_self: bool = False
    ) -> List[str]:
        if all_paths is None:
            all_paths = self.scanner.scan(self.models_directory)
        prefix = folder + "/"
        return [
            path for path in all_paths
            if path.startswith(prefix) or (include_self and path == folder)
        ]

    def rename_file(self, old_path: str, new_name: str) -> OperationResult:
        """Rename a model file within its folder.

        Raises:
            NotFoundError: If the model file does not exist.
            InvalidNameError: If the name is invalid or already taken.
            IOFailureError: If the rename fails on disk.
        """
        old_full = self.store.full_path_for(old_path)
        if not old_full.is_file():
            raise NotFoundError("The selected file does not exist on disk", file_path=str(old_full))

        folder, _, current_name = old_path.rpartition("/")
        validate_segment(new_name)
        if new_name == current_name:
            return OperationResult(new_path=old_path)

        new_path = join_logical(folder, new_name)
        new_full = self.store.full_path_for(new_path)
        if new_full.exists():
            raise InvalidNameError(
                f"A file already exists at: {new_path}",
                name=new_name,
                error_code=ErrorCode.NAME_COLLISION,
            )

        try:
            old_full.rename(new_full)
        except OSError as e:
            raise IOFailureError(
                f"Error renaming file: {e}",
                file_path=str(old_full),
                operation="rename",
                cause=e,
            ) from e

        changed = self._rekey(old_path, new_path)
        if changed:
            self.store.save()
        logger.info(f"Renamed: {old_path} -> {new_path}")
        return OperationResult(new_path=new_path, affected_count=1, catalog_changed=changed)

    def rename_folder(
        self,
        old_folder: str,
        new_name: str,
        all_paths: Optional[Iterable[str]] = None
    ) -> OperationResult:
        """Rename a folder and re-key every record inside it.

        Args:
            old_folder: Logical folder path.
            new_name: New last segment.
            all_paths: Known logical paths; scanned when omitted.
        """
        old_folder = old_folder.strip("/")
        old_full = self._folder_full_path(old_folder)
        if not old_folder or not old_full.is_dir():
            raise NotFoundError("The selected folder does not exist on disk", file_path=str(old_full))

        parent, _, current_name = old_folder.rpartition("/")
        validate_segment(new_name)
        if new_name == current_name:
            return OperationResult(new_path=old_folder)

        new_folder = join_logical(parent, new_name)
        new_full = self._folder_full_path(new_folder)
        if new_full.exists():
            raise InvalidNameError(
                f"A folder already exists at: {new_folder}",
                name=new_name,
                error_code=ErrorCode.NAME_COLLISION,
            )

        affected = self._paths_in_folder(old_folder, all_paths)
        try:
            old_full.rename(new_full)
        except OSError as e:
            raise IOFailureError(
                f"Error renaming folder: {e}",
                file_path=str(old_full),
                operation="rename_folder",
                cause=e,
            ) from e

        changed = False
        for old_path in affected:
            new_path = new_folder + old_path[len(old_folder):]
            changed = self._rekey(old_path, new_path) or changed
        if changed:
            self.store.save()

        logger.info(f"Renamed folder: {old_folder} -> {new_folder} ({len(affected)} files)")
        return OperationResult(new_path=new_folder, affected_count=len(affected), catalog_changed=changed)

    def move_file(self, path: str, target_folder: str) -> OperationResult:
        """Move a model file into another folder, keeping its name."""
        old_full = self.store.full_path_for(path)
        if not old_full.is_file():
            raise NotFoundError("The file does not exist on disk", file_path=str(old_full))

        target_folder = validate_folder_path(target_folder)
        name = path.rpartition("/")[2]
        new_path = join_logical(target_folder, name)
        if new_path == path:
            return OperationResult(new_path=path)

        new_full = self.store.full_path_for(new_path)
        if new_full.exists():
            raise InvalidNameError(
                f"A file with the same name already exists in the target folder: {new_path}",
                name=name,
                error_code=ErrorCode.NAME_COLLISION,
            )

        try:
            new_full.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(old_full), str(new_full))
        except OSError as e:
            raise IOFailureError(
                f"Error moving file: {e}",
                file_path=str(old_full),
                operation="move",
                cause=e,
            ) from e

        changed = self._rekey(path, new_path)
        if changed:
            self.store.save()
        logger.info(f"Moved: {path} -> {new_path}")
        return OperationResult(new_path=new_path, affected_count=1, catalog_changed=changed)

    def _delete_one(self, path: str) -> bool:
        """Delete a model file, its gallery images and its record."""
        full_path = self.store.full_path_for(path)
        try:
            full_path.unlink(missing_ok=True)
        except OSError as e:
            raise IOFailureError(
                f"Error deleting file: {e}",
                file_path=str(full_path),
                operation="delete",
                cause=e,
            ) from e

        record = self.store.remove(path)
        if record is None:
            return False
        if record.gallery:
            self.gallery.delete_images(record.gallery)
        return True

    def delete_file(self, path: str) -> OperationResult:
        """Delete a model file together with its record and gallery images.

        Missing pieces are skipped, so deleting twice is harmless.
        """
        changed = self._delete_one(path)
        if changed:
            self.store.save()
        logger.info(f"Deleted: {path}")
        return OperationResult(affected_count=1, catalog_changed=changed)

    def delete_folder(self, folder: str, all_paths: Optional[Iterable[str]] = None) -> OperationResult:
        """Delete a folder, every model inside it and their records."""
        folder = folder.strip("/")
        if not folder:
            raise InvalidNameError("Refusing to delete the library root", name=folder)

        contained = self._paths_in_folder(folder, all_paths, include_self=True)
        changed = False
        for path in contained:
            changed = self._delete_one(path) or changed

        folder_full = self._folder_full_path(folder)
        try:
            if folder_full.is_dir():
                shutil.rmtree(folder_full)
        except OSError as e:
            raise IOFailureError(
                f"Error deleting folder: {e}",
                file_path=str(folder_full),
                operation="delete_folder",
                cause=e,
            ) from e
        finally:
            if changed:
                self.store.save()

        logger.info(f"Deleted folder: {folder} ({len(contained)} files)")
        return OperationResult(affected_count=len(contained), catalog_changed=changed)

    def create_folder(self, parent: str, name: str) -> OperationResult:
        """Create an empty folder below ``parent``."""
        parent = validate_folder_path(parent)
        validate_segment(name)
        folder = join_logical(parent, name)
        folder_full = self._folder_full_path(folder)
        if folder_full.exists():
            raise InvalidNameError(
                f"A folder already exists at: {folder}",
                name=name,
                error_code=ErrorCode.NAME_COLLISION,
            )

        try:
            folder_full.mkdir(parents=True)
        except OSError as e:
            raise IOFailureError(
                f"Error creating folder: {e}",
                file_path=str(folder_full),
                operation="create_folder",
                cause=e,
            ) from e

        logger.info(f"Created folder: {folder}")
        return OperationResult(new_path=folder)

    def import_file(
        self,
        source: Union[str, Path],
        target_folder: str = "",
        new_name: Optional[str] = None
    ) -> OperationResult:
        """Copy an external model file into the library.

        The copy is not cataloged here; register the returned logical
        path with the reconciliation engine.
        """
        source = Path(source)
        if not source.is_file():
            raise NotFoundError("Source file does not exist", file_path=str(source))
        if not source.name.lower().endswith(self.store.extension.lower()):
            raise InvalidNameError(
                f"Only {self.store.extension} files can be imported",
                name=source.name,
            )

        target_folder = validate_folder_path(target_folder)
        name = new_name if new_name is not None else source.name[:-len(self.store.extension)]
        validate_segment(name)

        new_path = join_logical(target_folder, name)
        destination = self.store.full_path_for(new_path)
        if destination.exists():
            raise InvalidNameError(
                f"A file already exists at: {new_path}",
                name=name,
                error_code=ErrorCode.NAME_COLLISION,
            )

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(destination))
        except OSError as e:
            raise IOFailureError(
                f"Failed to copy file: {e}",
                file_path=str(source),
                operation="import",
                error_code=ErrorCode.WRITE_FAILED,
                cause=e,
            ) from e

        logger.info(f"Imported: {source.name} -> {new_path}")
        return OperationResult(new_path=new_path, affected_count=1)
