"""Configuration management for clusterwatch."""

from clusterwatch.config.loader import ConfigurationError, get_config, load_config, reload_config
from clusterwatch.config.settings import ClusterwatchSettings

__all__ = [
    "ClusterwatchSettings",
    "ConfigurationError",
    "get_config",
    "load_config",
    "reload_config",
]
