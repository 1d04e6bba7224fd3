"""Loading of application settings, with one process-wide instance."""

from __future__ import annotations

import os
import threading
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from clusterwatch.config.settings import CONFIG_PATH_ENV, ClusterwatchSettings


class ConfigurationError(Exception):
    """Settings could not be read, validated or written."""


_config: Optional[ClusterwatchSettings] = None
_config_lock = threading.Lock()


def check_config_file(path: Optional[str]) -> None:
    """Make sure a settings file, when named, can be read and parsed.

    The settings source itself silently ignores a bad file, so this is
    where the operator gets told about it.

    Raises:
        ConfigurationError: Missing, unreadable or malformed file.
    """
    if not path:
        return

    try:
        with open(path) as f:
            yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Settings file not found: {path} (unset {CONFIG_PATH_ENV} to use "
            "environment variables and defaults only)"
        ) from e
    except PermissionError as e:
        raise ConfigurationError(f"Settings file {path} is not readable") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in settings file {path}: {e}") from e


def describe_errors(errors: List[Dict[str, Any]]) -> str:
    """Turn pydantic validation errors into one line per bad setting."""
    lines = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ())) or "settings"
        line = f"{field}: {error.get('msg', 'invalid value')}"
        if error.get("input") is not None:
            line += f" (got {error['input']!r}; set CLUSTERWATCH_{field.upper()} or '{field}:')"
        lines.append(line)
    return "\n".join(lines)


def load_config(config_path: Optional[str] = None) -> ClusterwatchSettings:
    """Build settings from all sources and make them the current settings.

    Args:
        config_path: YAML settings file; exported as ``$CONFIG_PATH`` so the
            settings source picks it up.

    Returns:
        The validated settings.

    Raises:
        ConfigurationError: Bad settings file or invalid values.
    """
    global _config

    if config_path:
        os.environ[CONFIG_PATH_ENV] = config_path
    check_config_file(os.environ.get(CONFIG_PATH_ENV))

    try:
        settings = ClusterwatchSettings()
    except ValidationError as e:
        raise ConfigurationError(describe_errors(e.errors())) from e

    with _config_lock:
        _config = settings
    return settings


def get_config() -> ClusterwatchSettings:
    """Return the current settings.

    Raises:
        ConfigurationError: ``load_config`` has not succeeded yet.
    """
    with _config_lock:
        if _config is None:
            raise ConfigurationError("Configuration not loaded. Call load_config() first.")
        return _config


def reload_config() -> ClusterwatchSettings:
    """Drop the current settings and load them again from every source."""
    global _config
    with _config_lock:
        _config = None
    return load_config()
