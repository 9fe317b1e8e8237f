"""Configuration management for content deploy."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .constants import DEFAULT_DESTINATION
from .utils.exceptions import ConfigurationError


@dataclass
class ExportSettings:
    """
    Settings for one configured export target.

    Attributes:
        include_dependencies: Also export the content records the target references
    """

    include_dependencies: bool = True


@dataclass
class StoreConfig:
    """
    Live store selection.

    Attributes:
        factory: Import path ``module:attribute`` of a callable returning an EntityStore
        options: Keyword arguments passed to the factory
    """

    factory: str = "content_deploy.store.memory:SnapshotEntityStore"
    options: dict[str, Any] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "console"
    file: Path | None = None


@dataclass
class DeployConfig:
    """
    Complete configuration for content deploy.

    Example YAML:

        directories:
          sync: ./content/sync
        exports:
          "node:article": {}
          "taxonomy_term:tags":
            include_dependencies: false
        stream_wrappers:
          public: ./web/files
        store:
          factory: content_deploy.store.memory:SnapshotEntityStore
          options:
            path: ./site.yml
        logging:
          level: INFO
    """

    directories: dict[str, Path] = field(default_factory=dict)
    exports: dict[str, ExportSettings] = field(default_factory=dict)
    stream_wrappers: dict[str, Path] = field(default_factory=dict)
    store: StoreConfig = field(default_factory=StoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_directory(self, key: str) -> Path:
        """
        Get the directory of a named storage destination.

        Args:
            key: Destination name, e.g. ``sync``

        Returns:
            Directory path

        Raises:
            ConfigurationError: No directory is configured under that name
        """
        if key not in self.directories:
            known = ", ".join(sorted(self.directories)) or "none"
            raise ConfigurationError(
                f"Content directory '{key}' is not configured (known: {known})"
            )
        return self.directories[key]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeployConfig":
        """
        Build configuration from a parsed YAML mapping.

        Args:
            data: Configuration mapping

        Returns:
            DeployConfig instance
        """
        directories = {
            str(key): Path(value) for key, value in (data.get("directories") or {}).items()
        }

        exports = {
            str(name): ExportSettings(**(settings or {}))
            for name, settings in (data.get("exports") or {}).items()
        }

        stream_wrappers = {
            str(scheme): Path(value)
            for scheme, value in (data.get("stream_wrappers") or {}).items()
        }

        store = StoreConfig(**(data.get("store") or {}))

        logging_data = dict(data.get("logging") or {})
        if logging_data.get("file"):
            logging_data["file"] = Path(logging_data["file"])
        logging = LoggingConfig(**logging_data)

        return cls(
            directories=directories,
            exports=exports,
            stream_wrappers=stream_wrappers,
            store=store,
            logging=logging,
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "DeployConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            DeployConfig instance
        """
        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e

        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ValueError(
                f"Invalid configuration file structure in {config_path}: "
                f"expected dictionary, got {type(data).__name__}"
            )

        try:
            return cls.from_dict(data)
        except TypeError as e:
            raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

    @classmethod
    def from_env(cls) -> "DeployConfig":
        """
        Create configuration from environment variables.

        Environment variables:
            CONTENT_DEPLOY_SYNC_DIR: Directory of the default ``sync`` destination
            CONTENT_DEPLOY_STORE: Store factory import path
            CONTENT_DEPLOY_STORE_PATH: ``path`` option passed to the store factory
            LOG_LEVEL: Logging level (default: INFO)
            LOG_FORMAT: ``console`` or ``json`` (default: console)

        Returns:
            DeployConfig instance
        """
        directories = {}
        sync_dir = os.environ.get("CONTENT_DEPLOY_SYNC_DIR")
        if sync_dir:
            directories[DEFAULT_DESTINATION] = Path(sync_dir)

        store = StoreConfig()
        if os.environ.get("CONTENT_DEPLOY_STORE"):
            store.factory = os.environ["CONTENT_DEPLOY_STORE"]
        if os.environ.get("CONTENT_DEPLOY_STORE_PATH"):
            store.options["path"] = os.environ["CONTENT_DEPLOY_STORE_PATH"]

        logging_config = LoggingConfig(
            level=os.environ.get("LOG_LEVEL", "INFO"),
            format=os.environ.get("LOG_FORMAT", "console"),
        )

        return cls(directories=directories, store=store, logging=logging_config)


def load_config(config_file: Path | None = None) -> DeployConfig:
    """
    Load configuration from file or environment variables.

    Args:
        config_file: Optional path to YAML config file

    Returns:
        DeployConfig instance

    Raises:
        FileNotFoundError: If config_file is specified but doesn't exist
    """
    if config_file:
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_file}")
        return DeployConfig.from_file(config_file)
    return DeployConfig.from_env()
