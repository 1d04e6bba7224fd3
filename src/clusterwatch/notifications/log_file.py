"""Log file notification channel."""

from typing import Any, Mapping

from clusterwatch.models.alert import Alert
from clusterwatch.notifications.base import typed_updates
from clusterwatch.notifications.config import LogFileConfig


class LogFileChannel:
    """Channel entry for the alert log.

    The AlertLogger writes every dispatched alert before any channel runs,
    so ``notify`` has nothing left to do. The channel exists so the log
    takes part in the same enable/level settings as the other channels.
    """

    def __init__(self, config: LogFileConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return "log_file"

    @property
    def config(self) -> LogFileConfig:
        return self._config

    def is_enabled(self) -> bool:
        return self._config.enabled

    def notify(self, alert: Alert) -> None:
        return None

    def configure(self, settings: Mapping[str, Any]) -> None:
        updates = typed_updates(settings, {"enabled": bool, "log_path": str})
        self._config = self._config.model_copy(update=updates)
