"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest

from lora_catalog.config import Config, CatalogConfig, FingerprintConfig, LibraryConfig, DEFAULT_CHUNK_SIZE
from lora_catalog.utils.exceptions import ConfigurationError


class TestDefaults:
    """Tests for built-in defaults."""

    def test_default_config(self):
        config = Config()

        assert config.library.model_extension == ".safetensors"
        assert config.library.models_directory.parts[-2:] == ("models", "loras")
        assert config.catalog.catalog_path.name == "lora-triggers.json"
        assert config.catalog.gallery_directory.name == "lora-triggers-pictures"
        assert config.fingerprint.chunk_size == DEFAULT_CHUNK_SIZE == 1024 * 1024

    def test_gallery_follows_catalog_location(self, tmp_path):
        catalog = CatalogConfig.from_dict({"catalog_path": str(tmp_path / "db" / "cat.json")})

        assert catalog.gallery_directory == tmp_path / "db" / "lora-triggers-pictures"


class TestFromDict:
    """Tests for section parsing."""

    def test_extension_gets_dot(self):
        assert LibraryConfig.from_dict({"model_extension": "ckpt"}).model_extension == ".ckpt"

    def test_image_extensions_lowercased(self):
        library = LibraryConfig.from_dict({"image_extensions": [".PNG", ".Jpg"]})

        assert library.image_extensions == [".png", ".jpg"]

    def test_invalid_chunk_size(self):
        with pytest.raises(ConfigurationError):
            FingerprintConfig.from_dict({"chunk_size": 0})

    def test_custom_chunk_size(self):
        assert FingerprintConfig.from_dict({"chunk_size": 4096}).chunk_size == 4096


class TestConfigFile:
    """Tests for Config.load and Config.save."""

    def test_missing_file_gives_defaults(self, tmp_path):
        assert Config.load(tmp_path / "missing.yaml") == Config()

    def test_load(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "library:\n"
            f"  models_directory: {tmp_path / 'loras'}\n"
            "catalog:\n"
            f"  catalog_path: {tmp_path / 'db.json'}\n"
            "  indent: 4\n"
            "watcher:\n"
            "  debounce_seconds: 0.5\n",
            encoding="utf-8",
        )

        config = Config.load(config_file)

        assert config.library.models_directory == tmp_path / "loras"
        assert config.catalog.catalog_path == tmp_path / "db.json"
        assert config.catalog.indent == 4
        assert config.watcher.debounce_seconds == 0.5

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("library: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            Config.load(config_file)

    def test_not_a_mapping(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            Config.load(config_file)

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("", encoding="utf-8")

        assert Config.load(config_file) == Config()

    def test_save_and_reload(self, tmp_path):
        config = Config(library=LibraryConfig(models_directory=Path(tmp_path / "loras")))
        config.catalog.indent = 3
        config_file = tmp_path / "out" / "config.yaml"

        config.save(config_file)

        assert Config.load(config_file) == config
