"""
Configuration

Settings for talking to the package database. Defaults can be overridden
by a YAML file and then by environment variables.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://rdb.altlinux.org/api"

ENV_BASE_URL = "BRANCH_COMPARE_BASE_URL"
ENV_TIMEOUT = "BRANCH_COMPARE_TIMEOUT"


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings.

    Attributes:
        base_url: Package database API root
        timeout: HTTP timeout in seconds (the full branch export is large)
        default_target: Target branch when none is given
        default_secondary: Secondary branch when none is given
        known_branches: Branches accepted without asking the service;
            empty means every name is passed to the service
        json_indent: Indentation of the JSON report
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = 120.0
    default_target: str = "sisyphus"
    default_secondary: str = "p10"
    known_branches: tuple[str, ...] = field(default_factory=tuple)
    json_indent: Optional[int] = 2


def load_config_file(config_path: Path) -> dict:
    """Load a YAML settings file."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config file {config_path}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    return data


def _coerce(settings: Settings, values: Mapping[str, Any], source: str) -> Settings:
    known = {f.name for f in fields(Settings)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigError(f"Unknown settings in {source}: {', '.join(unknown)}")

    updates: dict[str, Any] = {}
    for key, value in values.items():
        if key == "timeout":
            try:
                value = float(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid timeout in {source}: {value!r}") from exc
            if value <= 0:
                raise ConfigError(f"Timeout must be positive in {source}: {value}")
        elif key == "known_branches":
            if isinstance(value, str) or not isinstance(value, (list, tuple)):
                raise ConfigError(f"known_branches in {source} must be a list")
            value = tuple(str(b) for b in value)
        elif key == "json_indent":
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise ConfigError(f"Invalid json_indent in {source}: {value!r}")
        elif not isinstance(value, str) or not value:
            raise ConfigError(f"Invalid {key} in {source}: {value!r}")
        updates[key] = value

    return replace(settings, **updates)


def load_settings(
    config_path: Optional[str | Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """
    Build settings from defaults, an optional YAML file and the environment.

    Args:
        config_path: YAML file with Settings field names as keys
        env: Environment mapping (defaults to os.environ)

    Returns:
        Settings instance

    Raises:
        ConfigError: If the file or a value is invalid
    """
    if env is None:
        env = os.environ

    settings = Settings()

    if config_path is not None:
        path = Path(config_path)
        settings = _coerce(settings, load_config_file(path), str(path))
        logger.debug(f"Loaded settings from {path}")

    overrides = {}
    if env.get(ENV_BASE_URL):
        overrides["base_url"] = env[ENV_BASE_URL]
    if env.get(ENV_TIMEOUT):
        overrides["timeout"] = env[ENV_TIMEOUT]
    if overrides:
        settings = _coerce(settings, overrides, "environment")

    return settings
