"""
Shared fixtures for the LoRA catalog tests.
"""

from pathlib import Path

import pytest

from lora_catalog.actions import FileOperations, GalleryManager
from lora_catalog.catalog import CatalogStore
from lora_catalog.reconciliation import ReconciliationEngine


def write_model(models_dir: Path, logical_path: str, data: bytes = b"model-bytes") -> Path:
    """Create a model file for ``logical_path`` and return its full path."""
    full_path = models_dir.joinpath(*(logical_path + ".safetensors").split("/"))
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_bytes(data)
    return full_path


@pytest.fixture
def models_dir(tmp_path):
    path = tmp_path / "loras"
    path.mkdir()
    return path


@pytest.fixture
def catalog_path(tmp_path):
    return tmp_path / "user-db" / "lora-triggers.json"


@pytest.fixture
def gallery_dir(tmp_path):
    path = tmp_path / "user-db" / "lora-triggers-pictures"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def store(catalog_path, models_dir):
    return CatalogStore(catalog_path, models_dir)


@pytest.fixture
def engine(store):
    return ReconciliationEngine(store)


@pytest.fixture
def gallery(gallery_dir):
    return GalleryManager(gallery_dir)


@pytest.fixture
def file_ops(store, gallery):
    return FileOperations(store, gallery)
