"""Application settings for the clusterwatch monitoring core."""

from __future__ import annotations

import os
from typing import Any, Dict, Literal, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

CONFIG_PATH_ENV = "CONFIG_PATH"
DEFAULT_NOTIFICATION_CONFIG_PATH = "~/.clusterwatch/notifications.json"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_LEVEL_ALIASES = {"WARN": "WARNING", "FATAL": "CRITICAL"}


class YamlFileSource(PydanticBaseSettingsSource):
    """Settings source backed by the YAML file named in ``$CONFIG_PATH``.

    The file is read once per settings instantiation. Unreadable or malformed
    files yield no values here; ``load_config`` reports them properly.
    """

    def __init__(self, settings_cls: Type[BaseSettings]) -> None:
        super().__init__(settings_cls)
        self._values = self._read(os.environ.get(CONFIG_PATH_ENV))

    @staticmethod
    def _read(path: Optional[str]) -> Dict[str, Any]:
        if not path:
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            return {}
        return data if isinstance(data, dict) else {}

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> Tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return {
            name: self._values[name]
            for name in self.settings_cls.model_fields
            if name in self._values
        }


class ClusterwatchSettings(BaseSettings):
    """Settings for the health monitor, alert store and dispatcher.

    Sources, highest priority first: constructor arguments, ``CLUSTERWATCH_*``
    environment variables, ``.env``, the ``$CONFIG_PATH`` YAML file, defaults.

    Channel settings are kept out of this model. They live in the JSON
    document at ``notification_config_path`` because they are rewritten at
    runtime from the settings screen.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLUSTERWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Minimum level of operational logs")
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="json for machines, text for a human at a terminal",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Append operational logs here instead of writing to stdout",
    )

    check_interval: float = Field(
        default=30.0,
        gt=0,
        description="Seconds between health evaluation cycles",
    )
    warning_dismiss_after: float = Field(
        default=0.0,
        ge=0,
        description="Seconds before WARNING health alerts dismiss themselves; 0 keeps them",
    )
    cluster_alerts: bool = Field(
        default=False,
        description="Also alert on a WARNING or CRITICAL overall cluster status",
    )
    repeat_health_alerts: bool = Field(
        default=True,
        description="Alert on every cycle a check stays unhealthy; false alerts only on change",
    )
    cluster_name: str = Field(
        default="clusterwatch",
        description="Name sent in webhook payloads",
    )
    max_alerts: int = Field(
        default=100,
        gt=0,
        description="Alerts kept in memory before the oldest is evicted",
    )
    notification_config_path: str = Field(
        default=DEFAULT_NOTIFICATION_CONFIG_PATH,
        description="JSON document with per-channel notification settings",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # File secrets are not used; the YAML file sits below .env
        return init_settings, env_settings, dotenv_settings, YamlFileSource(settings_cls)

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        level = _LOG_LEVEL_ALIASES.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level {v!r}, expected one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("cluster_name")
    @classmethod
    def strip_cluster_name(cls, v: str) -> str:
        name = v.strip()
        if not name:
            raise ValueError("cluster name must not be blank")
        return name
