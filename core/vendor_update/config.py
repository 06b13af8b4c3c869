"""Configuration management for vendor-update.

The configuration lives in a single YAML file under the XDG config home
(``~/.config/vendor-update/config.yaml`` by default). Every top-level section
maps onto one pydantic model; a missing file means all defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigError
from .interfaces import ConfigLoader
from .models import GlobalConfig, LogConfig, PrerequisiteConfig, RebootConfig, SystemConfig

logger = structlog.get_logger(__name__)

APP_DIR_NAME = "vendor-update"
CONFIG_FILE_NAME = "config.yaml"

# YAML section name -> (SystemConfig attribute, model)
SECTIONS: dict[str, tuple[str, type[BaseModel]]] = {
    "global": ("global_config", GlobalConfig),
    "log": ("log", LogConfig),
    "prerequisite": ("prerequisite", PrerequisiteConfig),
    "reboot": ("reboot", RebootConfig),
}


def get_config_dir() -> Path:
    """Return ``$XDG_CONFIG_HOME/vendor-update``, creating it if needed."""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg_config_home) if xdg_config_home else Path.home() / ".config"

    config_dir = base / APP_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_default_config_path() -> Path:
    """Return the path of the default configuration file."""
    return get_config_dir() / CONFIG_FILE_NAME


class YamlConfigLoader(ConfigLoader):
    """Reads and writes configuration dictionaries as YAML."""

    def load(self, path: str) -> dict[str, Any]:
        """Read a YAML configuration file.

        An empty file yields an empty dictionary.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        config_path = Path(path)
        if not config_path.exists():
            logger.debug("config_file_not_found", path=path)
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            data = yaml.safe_load(config_path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration in {path} must be a mapping of sections")
        return data

    def save(self, config: dict[str, Any], path: str) -> None:
        """Write a configuration dictionary, creating parent directories."""
        config_path = Path(path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(yaml.safe_dump(config, default_flow_style=False, sort_keys=False))
        logger.info("config_saved", path=path)


class ConfigManager:
    """Loads, caches and saves the vendor-update configuration."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize the configuration manager.

        Args:
            config_path: Configuration file. Defaults to the XDG location.
        """
        self.config_path = config_path or get_default_config_path()
        self._loader = YamlConfigLoader()
        self._config: SystemConfig | None = None

    def load(self) -> SystemConfig:
        """Load the configuration file, falling back to defaults if absent.

        Raises:
            ConfigError: If the file cannot be parsed or a value is invalid.
        """
        try:
            data = self._loader.load(str(self.config_path))
        except FileNotFoundError:
            logger.info("using_default_config", path=str(self.config_path))
            self._config = SystemConfig()
            return self._config

        self._config = self._parse_config(data)
        logger.debug("config_loaded", path=str(self.config_path))
        return self._config

    def save(self, config: SystemConfig | None = None) -> None:
        """Write the given (or current) configuration to the file."""
        if config is not None:
            self._config = config
        self._loader.save(self.serialize(self._config or SystemConfig()), str(self.config_path))

    def get_config(self) -> SystemConfig:
        """Return the loaded configuration, loading it on first use."""
        if self._config is None:
            return self.load()
        return self._config

    def get_provider_options(self, provider_name: str) -> dict[str, Any]:
        """Return a copy of the options configured for a provider.

        Args:
            provider_name: Name of the provider, as used under ``providers``.
        """
        return dict(self.get_config().providers.get(provider_name, {}))

    def init_config(self, force: bool = False) -> bool:
        """Write a configuration file with default values.

        Args:
            force: Overwrite an existing file.

        Returns:
            True if the file was written, False if it already existed.
        """
        if self.config_path.exists() and not force:
            logger.info("config_exists", path=str(self.config_path))
            return False

        self.save(SystemConfig())
        logger.info("config_initialized", path=str(self.config_path))
        return True

    def _parse_config(self, data: dict[str, Any]) -> SystemConfig:
        """Build a SystemConfig from the raw section dictionaries.

        Provider entries whose options are not a mapping are ignored.
        """
        values: dict[str, Any] = {}
        for section, (attribute, model) in SECTIONS.items():
            raw = data.get(section) or {}
            if not isinstance(raw, dict):
                raise ConfigError(f"Section '{section}' in {self.config_path} must be a mapping")
            try:
                values[attribute] = model(**raw)
            except ValidationError as e:
                raise ConfigError(f"Invalid '{section}' section in {self.config_path}: {e}") from e

        providers = data.get("providers") or {}
        if isinstance(providers, dict):
            values["providers"] = {
                name: options for name, options in providers.items() if isinstance(options, dict)
            }

        return SystemConfig(**values)

    @staticmethod
    def serialize(config: SystemConfig) -> dict[str, Any]:
        """Convert a SystemConfig into the YAML file layout."""
        data: dict[str, Any] = {
            section: getattr(config, attribute).model_dump(mode="json")
            for section, (attribute, _model) in SECTIONS.items()
        }
        data["providers"] = config.providers
        return data
