"""Config - load run defaults from a YAML file.

Lookup order:
- explicit path (--config)
- $ANEW_CONFIG
- config/anew.yaml in the working directory, when present

Every FilterOptions field may appear at the top level. A `logging:`
section sets `level` and `file`. Command-line flags override file values.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from .models import FilterOptions

logger = logging.getLogger(__name__)

CONFIG_ENV = "ANEW_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/anew.yaml")


class ConfigError(Exception):
    """Configuration file or option values are invalid."""


@dataclass
class LoggingConfig:
    """Logging section of the config file."""
    level: str = "WARNING"
    file: Optional[str] = None


@dataclass
class Settings:
    """Resolved configuration for one run."""
    options: FilterOptions
    logging: LoggingConfig
    source: Optional[Path] = None


def _resolve_config_path(config_path: str | Path | None) -> tuple[Optional[Path], bool]:
    """Return (path, explicit). `explicit` paths must exist."""
    if config_path:
        return Path(config_path), True
    env_path = os.getenv(CONFIG_ENV)
    if env_path:
        return Path(env_path), True
    if DEFAULT_CONFIG_PATH.exists():
        return DEFAULT_CONFIG_PATH, False
    return None, False


def _load_yaml(path: Path) -> dict:
    """Load a YAML mapping; an empty file is an empty mapping."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def load_config_file(config_path: str | Path | None = None) -> tuple[dict, Optional[Path]]:
    """
    Read the raw config mapping.

    Returns:
        Tuple of (mapping, path it came from or None)

    Raises:
        ConfigError: an explicitly requested file is missing or malformed
    """
    path, explicit = _resolve_config_path(config_path)
    if path is None:
        return {}, None

    try:
        return _load_yaml(path), path
    except (OSError, yaml.YAMLError, ConfigError) as e:
        if explicit:
            raise ConfigError(f"Failed to load config {path}: {e}") from e
        logger.warning(f"Failed to load {path}: {e}")
        return {}, None


def build_settings(file_config: dict, overrides: Optional[dict[str, Any]] = None,
                   source: Optional[Path] = None) -> Settings:
    """
    Merge file values with command-line overrides and validate.

    Args:
        file_config: Mapping from the config file
        overrides: Non-None CLI values, keyed by FilterOptions field
        source: Where `file_config` came from (for messages)

    Raises:
        ConfigError: unknown keys or invalid values
    """
    data = dict(file_config)
    log_section = data.pop("logging", None) or {}
    if not isinstance(log_section, dict):
        raise ConfigError(f"{source or 'config'}: 'logging' must be a mapping")

    data.update({k: v for k, v in (overrides or {}).items() if v is not None})

    try:
        options = FilterOptions(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid options ({source or 'command line'}):\n{e}") from e

    unknown = set(log_section) - {"level", "file"}
    if unknown:
        raise ConfigError(f"{source or 'config'}: unknown logging keys {sorted(unknown)}")

    log_config = LoggingConfig(
        level=str(log_section.get("level", LoggingConfig.level)).upper(),
        file=log_section.get("file"),
    )
    if not isinstance(logging.getLevelName(log_config.level), int):
        raise ConfigError(f"Unknown log level: {log_config.level}")

    return Settings(options=options, logging=log_config, source=source)


def load_settings(config_path: str | Path | None = None,
                  overrides: Optional[dict[str, Any]] = None) -> Settings:
    """Load the config file (if any) and apply overrides."""
    file_config, source = load_config_file(config_path)
    if source:
        logger.debug(f"Loaded config from {source}")
    return build_settings(file_config, overrides, source)
