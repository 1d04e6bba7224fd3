"""Notification channel configuration and its JSON persistence.

The configuration is an immutable snapshot: the dispatcher swaps whole
objects on update and never mutates one that a running dispatch may hold.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clusterwatch.config.loader import ConfigurationError
from clusterwatch.config.settings import DEFAULT_NOTIFICATION_CONFIG_PATH
from clusterwatch.models.enums import AlertLevel

log = structlog.get_logger()

DEFAULT_ALERT_LOG_PATH = "~/.clusterwatch/alerts.log"


class _FrozenConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class TerminalBellConfig(_FrozenConfig):
    enabled: bool = True
    min_alert_level: int = int(AlertLevel.ERROR)
    repeat_count: int = Field(default=1, description="Bells emitted for CRITICAL alerts")


class LogFileConfig(_FrozenConfig):
    enabled: bool = True
    log_path: str = DEFAULT_ALERT_LOG_PATH


class DesktopNotifyConfig(_FrozenConfig):
    enabled: bool = False
    min_alert_level: int = int(AlertLevel.ERROR)
    timeout: int = Field(default=10, description="Notification timeout in seconds")


class WebhookConfig(_FrozenConfig):
    enabled: bool = False
    url: str = ""
    min_alert_level: int = int(AlertLevel.CRITICAL)
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: int = Field(default=30, description="Request timeout in seconds")
    retry_count: int = Field(default=3, description="Total send attempts")


class NotificationConfig(_FrozenConfig):
    """Global notification settings plus one section per channel."""

    enable_notifications: bool = True
    min_alert_level: int = int(AlertLevel.WARNING)

    terminal_bell: TerminalBellConfig = Field(default_factory=TerminalBellConfig)
    log_file: LogFileConfig = Field(default_factory=LogFileConfig)
    desktop_notify: DesktopNotifyConfig = Field(default_factory=DesktopNotifyConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)


def default_config_path() -> Path:
    """Per-user location of the notification config file."""
    return Path(DEFAULT_NOTIFICATION_CONFIG_PATH).expanduser()


def load_notification_config(path: Optional[str] = None) -> NotificationConfig:
    """Load notification settings, falling back to defaults.

    A missing, unreadable or malformed file is not an error: defaults are
    returned and nothing is written until the user saves settings.

    Args:
        path: Config file path. Defaults to the per-user location.

    Returns:
        NotificationConfig loaded from disk, or the defaults.
    """
    config_file = Path(path).expanduser() if path else default_config_path()

    if not config_file.exists():
        log.debug("notification_config_not_found", path=str(config_file))
        return NotificationConfig()

    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
        config = NotificationConfig.model_validate(data)
        log.debug("notification_config_loaded", path=str(config_file))
        return config
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        log.warning(
            "notification_config_invalid",
            path=str(config_file),
            error=str(e),
            message="Using default notification settings",
        )
        return NotificationConfig()


def save_notification_config(config: NotificationConfig, path: Optional[str] = None) -> Path:
    """Write notification settings atomically (temp file + rename).

    Args:
        config: Settings to persist.
        path: Config file path. Defaults to the per-user location.

    Returns:
        Path of the written file.

    Raises:
        ConfigurationError: If the directory or file cannot be written.
    """
    config_file = Path(path).expanduser() if path else default_config_path()
    content = config.model_dump_json(indent=2) + "\n"

    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=config_file.parent,
            prefix=".tmp-notifications-",
            suffix=".json",
        )
    except OSError as e:
        raise ConfigurationError(
            f"Cannot write notification config to {config_file}: {e}"
        )

    try:
        with open(temp_fd, "w", encoding="utf-8") as f:
            f.write(content)
        # Atomic rename (same filesystem)
        shutil.move(temp_path, config_file)
    except OSError as e:
        Path(temp_path).unlink(missing_ok=True)
        raise ConfigurationError(
            f"Cannot write notification config to {config_file}: {e}"
        )

    log.info("notification_config_saved", path=str(config_file))
    return config_file
