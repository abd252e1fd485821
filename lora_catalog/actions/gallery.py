"""
Gallery Manager
===============

Gallery images live in a flat directory beside the catalog. Their file
names start with the owning record's logical path, slashes replaced by
underscores, so renaming a model means rewriting that prefix.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union
import shutil

from lora_catalog.catalog.models import CatalogRecord
from lora_catalog.utils.logging_config import get_logger
from lora_catalog.utils.exceptions import (
    InvalidNameError,
    IOFailureError,
    NotFoundError,
    ErrorCode,
)

logger = get_logger(__name__)

DEFAULT_IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp")
TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def safe_prefix(logical_path: str) -> str:
    """Flatten a logical path into a file name prefix."""
    return logical_path.replace("/", "_").replace("\\", "_")


def rewrite_gallery_names(old_path: str, new_path: str, names: Sequence[str]) -> List[str]:
    """Rewrite gallery file names owned by ``old_path`` to ``new_path``.

    A name is owned when it starts with the flattened old path followed
    by an underscore. Other names are returned unchanged, in order.
    """
    old_prefix = safe_prefix(old_path)
    new_prefix = safe_prefix(new_path)
    marker = old_prefix + "_"
    return [
        new_prefix + name[len(old_prefix):] if name.startswith(marker) else name
        for name in names
    ]


def gallery_file_name(logical_path: str, extension: str, when: Optional[datetime] = None) -> str:
    """Name for a newly added gallery image."""
    when = when or datetime.now()
    return f"{safe_prefix(logical_path)}_{when.strftime(TIMESTAMP_FORMAT)}{extension}"


@dataclass
class GalleryImage:
    """A gallery file name resolved against the gallery directory."""
    file_name: str
    full_path: Path
    exists: bool


class GalleryManager:
    """File-level gallery operations.

    Image bytes are never opened here; names are opaque strings except
    for the ownership prefix.
    """

    def __init__(
        self,
        gallery_directory: Union[str, Path],
        image_extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS
    ):
        self.gallery_directory = Path(gallery_directory)
        self.image_extensions = {ext.lower() for ext in image_extensions}

    def is_image_file(self, file_path: Union[str, Path]) -> bool:
        return Path(file_path).suffix.lower() in self.image_extensions

    def resolve(self, record: Optional[CatalogRecord]) -> List[GalleryImage]:
        """Resolve a record's gallery names to paths."""
        if record is None or not record.gallery:
            return []
        images = []
        for name in record.gallery:
            full_path = self.gallery_directory / name
            images.append(GalleryImage(file_name=name, full_path=full_path, exists=full_path.is_file()))
        return images

    def add_image(self, source: Union[str, Path], record: CatalogRecord) -> str:
        """Copy an image into the gallery and append it to the record.

        Returns:
            The new gallery file name.

        Raises:
            NotFoundError: If the source image does not exist.
            InvalidNameError: If the source is not an image or the name is taken.
            IOFailureError: If the copy fails.
        """
        source = Path(source)
        if not source.is_file():
            raise NotFoundError("Image not found", file_path=str(source))
        if not self.is_image_file(source):
            raise InvalidNameError("Not a supported image file", name=source.name)

        file_name = gallery_file_name(record.path, source.suffix)
        destination = self.gallery_directory / file_name
        if destination.exists():
            raise InvalidNameError(
                "A gallery image with this name already exists",
                name=file_name,
                error_code=ErrorCode.NAME_COLLISION,
            )

        try:
            self.gallery_directory.mkdir(parents=True, exist_ok=True)
            shutil.copy2(str(source), str(destination))
        except OSError as e:
            raise IOFailureError(
                f"Failed to copy image: {e}",
                file_path=str(source),
                operation="gallery_add",
                error_code=ErrorCode.WRITE_FAILED,
                cause=e,
            ) from e

        record.gallery.append(file_name)
        logger.info(f"Added gallery image {file_name}", extra={"logical_path": record.path})
        return file_name

    def delete_images(self, names: Iterable[str]) -> bool:
        """Delete gallery files; missing files are skipped.

        Returns:
            True if every existing file was deleted.
        """
        all_deleted = True
        for name in names:
            image_path = self.gallery_directory / name
            try:
                image_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete gallery image {name}: {e}")
                all_deleted = False
        return all_deleted

    def rename_images(self, old_path: str, new_path: str, record: CatalogRecord) -> List[str]:
        """Rename a record's gallery files after the record moved.

        Names whose file cannot be renamed, or whose new name is already
        taken, keep their old name; names whose file is already gone are
        rewritten anyway.

        Returns:
            The record's updated gallery list.
        """
        updated = []
        rewritten = rewrite_gallery_names(old_path, new_path, record.gallery)
        for old_name, new_name in zip(record.gallery, rewritten):
            if old_name == new_name:
                updated.append(old_name)
                continue

            old_file = self.gallery_directory / old_name
            if not old_file.exists():
                updated.append(new_name)
                continue

            new_file = self.gallery_directory / new_name
            if new_file.exists():
                logger.warning(f"Gallery image {new_name} already exists, keeping {old_name}")
                updated.append(old_name)
                continue

            try:
                old_file.rename(new_file)
                updated.append(new_name)
            except OSError as e:
                logger.warning(f"Failed to rename gallery image {old_name}: {e}")
                updated.append(old_name)

        record.gallery = updated
        return updated
