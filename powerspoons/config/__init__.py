"""
Powerspoons Configuration - TOML-based manager configuration.

This module provides:
- The manager's configuration schema
- Loading and validation of the [manager] section
- Generation of a commented default config file
- Paths of every persisted file, derived from base_dir

Example usage:
    from powerspoons.config import load_config

    config = load_config()          # $POWERSPOONS_CONFIG or ~/.powerspoons/config.toml
    print(config.manifest_url)
    print(config.state_file)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from powerspoons.config.schema import ConfigField, SchemaError, validate_config
from powerspoons.config.toml_handler import (
    TOMLError,
    generate_toml_from_schema,
    read_toml,
    write_toml,
)

CONFIG_ENV_VAR = "POWERSPOONS_CONFIG"
SECTION = "manager"
DEFAULT_BASE_DIR = "~/.powerspoons"
DEFAULT_MANIFEST_URL = (
    "https://raw.githubusercontent.com/m0hill/power-spoons/main/manifest.json"
)

MANAGER_SCHEMA: dict[str, ConfigField] = {
    "manifest_url": ConfigField(
        str, DEFAULT_MANIFEST_URL, "URL of the package manifest", min=1
    ),
    "base_dir": ConfigField(
        str, DEFAULT_BASE_DIR, "Directory for state, secrets, settings and cache", min=1
    ),
    "auto_refresh_interval": ConfigField(
        int, 24 * 60 * 60, "Seconds between automatic manifest refreshes", min=60
    ),
    "http_timeout": ConfigField(
        float, 30.0, "HTTP timeout in seconds", min=0.1
    ),
    "log_level": ConfigField(
        str, "INFO", "Log level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    ),
    "log_to_file": ConfigField(bool, False, "Also log to powerspoons.log in base_dir"),
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be loaded."""

    pass


@dataclass(frozen=True)
class ManagerConfig:
    """
    Resolved manager configuration.

    Attributes:
        manifest_url: Manifest URL
        base_dir: Root directory of all persisted files
        auto_refresh_interval: Seconds between automatic refreshes
        http_timeout: HTTP client timeout in seconds
        log_level: Root log level name
        log_to_file: Whether to add a rotating log file
    """

    manifest_url: str = DEFAULT_MANIFEST_URL
    base_dir: Path = Path(DEFAULT_BASE_DIR).expanduser()
    auto_refresh_interval: int = 24 * 60 * 60
    http_timeout: float = 30.0
    log_level: str = "INFO"
    log_to_file: bool = False

    @classmethod
    def from_dict(cls, values: dict[str, Any]) -> "ManagerConfig":
        data = dict(values)
        data["base_dir"] = Path(data["base_dir"]).expanduser()
        return cls(**data)

    @property
    def state_file(self) -> Path:
        return self.base_dir / "state.json"

    @property
    def secrets_file(self) -> Path:
        return self.base_dir / "secrets.json"

    @property
    def settings_dir(self) -> Path:
        return self.base_dir / "settings"

    @property
    def cache_dir(self) -> Path:
        return self.base_dir / "cache"

    @property
    def legacy_file(self) -> Path:
        return self.base_dir / "legacy.json"

    @property
    def log_file(self) -> Path:
        return self.base_dir / "powerspoons.log"


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(DEFAULT_BASE_DIR).expanduser() / "config.toml"


def load_config(path: Path | None = None) -> ManagerConfig:
    """
    Load the manager configuration.

    Args:
        path: Config file (default: default_config_path())

    Returns:
        ManagerConfig; defaults when the file does not exist

    Raises:
        ConfigError: If the file is unreadable or contains invalid values
    """
    path = path or default_config_path()
    if not path.exists():
        return ManagerConfig.from_dict(
            validate_config({}, MANAGER_SCHEMA)
        )

    try:
        data = read_toml(path)
    except TOMLError as e:
        raise ConfigError(str(e)) from e

    section = data.get(SECTION, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{SECTION}] in {path} must be a table")

    try:
        values = validate_config(section, MANAGER_SCHEMA)
    except SchemaError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    return ManagerConfig.from_dict(values)


def write_default_config(path: Path | None = None) -> Path:
    """
    Write a commented config file with default values.

    Raises:
        ConfigError: If the file cannot be written
    """
    path = path or default_config_path()
    document = generate_toml_from_schema(SECTION, MANAGER_SCHEMA, {})
    try:
        write_toml(path, document)
    except TOMLError as e:
        raise ConfigError(str(e)) from e
    return path


__all__ = [
    "ConfigError",
    "ConfigField",
    "MANAGER_SCHEMA",
    "ManagerConfig",
    "default_config_path",
    "load_config",
    "write_default_config",
]
