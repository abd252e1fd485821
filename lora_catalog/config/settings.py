"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
All settings have defaults matching a stock ComfyUI user profile.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict
import yaml
import logging

from lora_catalog.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

COMFYUI_ROOT = Path.home() / "Documents" / "ComfyUI"
DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1 MiB


@dataclass
class LibraryConfig:
    """Model library configuration.

    Attributes:
        models_directory: Root directory scanned for model files.
        model_extension: Extension of cataloged model files.
        image_extensions: Extensions accepted as gallery images.
    """
    models_directory: Path = field(default_factory=lambda: COMFYUI_ROOT / "models" / "loras")
    model_extension: str = ".safetensors"
    image_extensions: List[str] = field(default_factory=lambda: [
        ".jpg", ".jpeg", ".png", ".bmp", ".gif", ".webp"
    ])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LibraryConfig":
        """Create LibraryConfig from dictionary."""
        if not data:
            return cls()

        defaults = cls()
        models_dir = data.get("models_directory")
        extension = str(data.get("model_extension", defaults.model_extension))
        if not extension.startswith("."):
            extension = "." + extension

        return cls(
            models_directory=Path(models_dir).expanduser() if models_dir else defaults.models_directory,
            model_extension=extension,
            image_extensions=[e.lower() for e in data.get("image_extensions", defaults.image_extensions)],
        )


@dataclass
class CatalogConfig:
    """Catalog persistence configuration.

    Attributes:
        catalog_path: JSON file holding the path-to-record map.
        gallery_directory: Directory holding gallery images.
        indent: JSON indentation used when saving.
        abort_on_corrupt: Refuse to start when the catalog cannot be parsed.
    """
    catalog_path: Path = field(
        default_factory=lambda: COMFYUI_ROOT / "user" / "default" / "user-db" / "lora-triggers.json"
    )
    gallery_directory: Path = field(
        default_factory=lambda: COMFYUI_ROOT / "user" / "default" / "user-db" / "lora-triggers-pictures"
    )
    indent: int = 2
    abort_on_corrupt: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogConfig":
        """Create CatalogConfig from dictionary."""
        if not data:
            return cls()

        defaults = cls()
        catalog_path = data.get("catalog_path")
        catalog_path = Path(catalog_path).expanduser() if catalog_path else defaults.catalog_path

        gallery_dir = data.get("gallery_directory")
        if gallery_dir:
            gallery_dir = Path(gallery_dir).expanduser()
        else:
            gallery_dir = catalog_path.parent / defaults.gallery_directory.name

        return cls(
            catalog_path=catalog_path,
            gallery_directory=gallery_dir,
            indent=int(data.get("indent", defaults.indent)),
            abort_on_corrupt=bool(data.get("abort_on_corrupt", defaults.abort_on_corrupt)),
        )


@dataclass
class FingerprintConfig:
    """Content fingerprint settings.

    Attributes:
        chunk_size: Bytes hashed from the head and from the tail of a file.
            Fingerprints are only compatible with other tooling at 1 MiB.
    """
    chunk_size: int = DEFAULT_CHUNK_SIZE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FingerprintConfig":
        """Create FingerprintConfig from dictionary."""
        if not data:
            return cls()

        chunk_size = int(data.get("chunk_size", DEFAULT_CHUNK_SIZE))
        if chunk_size <= 0:
            raise ConfigurationError(
                "chunk_size must be positive",
                config_key="fingerprint.chunk_size",
                expected_type="positive int",
            )
        if chunk_size != DEFAULT_CHUNK_SIZE:
            logger.warning(
                f"Non-standard fingerprint chunk size {chunk_size}; "
                "fingerprints will not match other tools"
            )
        return cls(chunk_size=chunk_size)


@dataclass
class WatcherConfig:
    """Library watcher configuration.

    Attributes:
        debounce_seconds: Quiet period before a change notification fires.
    """
    debounce_seconds: float = 1.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatcherConfig":
        """Create WatcherConfig from dictionary."""
        if not data:
            return cls()
        return cls(
            debounce_seconds=float(data.get("debounce_seconds", cls.debounce_seconds)),
        )


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    library: LibraryConfig = field(default_factory=LibraryConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    fingerprint: FingerprintConfig = field(default_factory=FingerprintConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, looks for
                        config.yaml in the current directory.

        Returns:
            Config instance with loaded settings.

        Raises:
            ConfigurationError: If the file is not valid YAML or not a mapping.
        """
        if config_path is None:
            config_path = Path("config.yaml")
        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file not found at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse config file: {e}")
            raise ConfigurationError(
                f"Invalid YAML in {config_path}", cause=e
            ) from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Config file {config_path} must contain a mapping",
                expected_type="mapping",
            )

        logger.info(f"Loaded configuration from {config_path}")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        return cls(
            library=LibraryConfig.from_dict(data.get("library", {})),
            catalog=CatalogConfig.from_dict(data.get("catalog", {})),
            fingerprint=FingerprintConfig.from_dict(data.get("fingerprint", {})),
            watcher=WatcherConfig.from_dict(data.get("watcher", {})),
        )

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path where to save the configuration.
        """
        data = {
            "library": {
                "models_directory": str(self.library.models_directory),
                "model_extension": self.library.model_extension,
                "image_extensions": list(self.library.image_extensions),
            },
            "catalog": {
                "catalog_path": str(self.catalog.catalog_path),
                "gallery_directory": str(self.catalog.gallery_directory),
                "indent": self.catalog.indent,
                "abort_on_corrupt": self.catalog.abort_on_corrupt,
            },
            "fingerprint": {
                "chunk_size": self.fingerprint.chunk_size,
            },
            "watcher": {
                "debounce_seconds": self.watcher.debounce_seconds,
            },
        }

        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")
