"""
LoRA Catalog
============

Keeps a JSON catalog of LoRA model metadata in sync with the model files
on disk.

Features:
- Cheap partial-content fingerprints for multi-gigabyte files
- Reconciliation of files, catalog records and stored fingerprints
- Folder tree and fuzzy search over the library
- Rename, move, delete and import operations that keep the catalog
  and gallery in step
"""

__version__ = "0.1.0"
