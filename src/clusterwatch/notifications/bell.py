"""Terminal bell notifications."""

import sys
import time
from typing import Any, Mapping, Optional, TextIO

import structlog

from clusterwatch.models.alert import Alert
from clusterwatch.models.enums import AlertLevel
from clusterwatch.notifications.base import typed_updates
from clusterwatch.notifications.config import TerminalBellConfig

log = structlog.get_logger()

BELL = "\a"
BELL_INTERVAL = 0.1  # seconds between repeated bells


class TerminalBellChannel:
    """Audible terminal bell, repeated for CRITICAL alerts.

    Writes the ASCII BEL character to stderr so it does not interfere with
    the dashboard drawing on stdout.
    """

    def __init__(
        self,
        config: TerminalBellConfig,
        stream: Optional[TextIO] = None,
        interval: float = BELL_INTERVAL,
    ) -> None:
        """Initialize terminal bell channel.

        Args:
            config: Channel settings (repeat count below 1 is treated as 1)
            stream: Where to write the bell (default: sys.stderr)
            interval: Delay between repeated bells in seconds
        """
        if config.repeat_count <= 0:
            config = config.model_copy(update={"repeat_count": 1})
        self._config = config
        self._stream = stream
        self.interval = interval

    @property
    def name(self) -> str:
        return "terminal_bell"

    @property
    def config(self) -> TerminalBellConfig:
        return self._config

    def is_enabled(self) -> bool:
        return self._config.enabled

    def bell_count(self, alert: Alert) -> int:
        """Number of bells to emit for an alert."""
        if alert.level == AlertLevel.CRITICAL and self._config.repeat_count > 1:
            return self._config.repeat_count
        return 1

    def notify(self, alert: Alert) -> None:
        if alert.level < self._config.min_alert_level:
            return

        stream = self._stream or sys.stderr
        count = self.bell_count(alert)
        for i in range(count):
            stream.write(BELL)
            stream.flush()
            if i < count - 1:
                time.sleep(self.interval)

        log.debug("terminal_bell_sent", alert_id=alert.id, bells=count)

    def configure(self, settings: Mapping[str, Any]) -> None:
        updates = typed_updates(
            settings,
            {"enabled": bool, "min_alert_level": int, "repeat_count": int},
        )
        self._config = self._config.model_copy(update=updates)
