"""Actions module for library file operations."""

from .file_operations import FileOperations, OperationResult, validate_segment, validate_folder_path
from .gallery import (
    GalleryManager,
    GalleryImage,
    rewrite_gallery_names,
    gallery_file_name,
    safe_prefix,
)

__all__ = [
    "FileOperations",
    "OperationResult",
    "validate_segment",
    "validate_folder_path",
    "GalleryManager",
    "GalleryImage",
    "rewrite_gallery_names",
    "gallery_file_name",
    "safe_prefix",
]
