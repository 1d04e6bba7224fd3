"""Desktop notifications via the host platform's notification helper."""

import shutil
import subprocess
import sys
from typing import Any, List, Mapping, Optional

import structlog

from clusterwatch.models.alert import Alert
from clusterwatch.models.enums import AlertLevel
from clusterwatch.notifications.base import typed_updates
from clusterwatch.notifications.config import DesktopNotifyConfig
from clusterwatch.notifications.exceptions import DesktopNotifyError

log = structlog.get_logger()

APP_NAME = "clusterwatch"
DEFAULT_TIMEOUT = 10  # seconds
# Upper bound for the helper process itself, independent of display timeout
COMMAND_TIMEOUT = 15.0

PLATFORM_LINUX = "linux"
PLATFORM_MACOS = "darwin"
PLATFORM_UNSUPPORTED = "unsupported"

_ICONS = {
    AlertLevel.INFO: "dialog-information",
    AlertLevel.WARNING: "dialog-warning",
    AlertLevel.ERROR: "dialog-error",
    AlertLevel.CRITICAL: "dialog-error",
}

_URGENCY = {
    AlertLevel.INFO: "low",
    AlertLevel.WARNING: "normal",
    AlertLevel.ERROR: "normal",
    AlertLevel.CRITICAL: "critical",
}


def resolve_platform(platform: Optional[str] = None) -> str:
    """Map a ``sys.platform`` value to a supported notification platform."""
    value = platform if platform is not None else sys.platform
    if value.startswith("linux"):
        return PLATFORM_LINUX
    if value == "darwin":
        return PLATFORM_MACOS
    return PLATFORM_UNSUPPORTED


def _applescript_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class DesktopNotifyChannel:
    """Desktop notification channel.

    Availability is checked once at construction:
    - Linux: available when ``notify-send`` is on PATH
    - macOS: always available (``osascript``)
    - Anything else: unavailable
    """

    def __init__(
        self,
        config: DesktopNotifyConfig,
        platform: Optional[str] = None,
    ) -> None:
        """Initialize desktop notification channel.

        Args:
            config: Channel settings (timeout <= 0 falls back to 10 seconds)
            platform: Override for ``sys.platform`` (testing)
        """
        if config.timeout <= 0:
            config = config.model_copy(update={"timeout": DEFAULT_TIMEOUT})
        self._config = config
        self.platform = resolve_platform(platform)
        self.available = self._check_availability()

        log.debug(
            "desktop_notify_availability",
            platform=self.platform,
            available=self.available,
        )

    def _check_availability(self) -> bool:
        if self.platform == PLATFORM_LINUX:
            return shutil.which("notify-send") is not None
        if self.platform == PLATFORM_MACOS:
            return True
        return False

    @property
    def name(self) -> str:
        return "desktop_notify"

    @property
    def config(self) -> DesktopNotifyConfig:
        return self._config

    def is_enabled(self) -> bool:
        return self._config.enabled and self.available

    def notify(self, alert: Alert) -> None:
        if alert.level < self._config.min_alert_level:
            return

        if not self.available:
            raise DesktopNotifyError("desktop notifications not available on this system")

        if self.platform == PLATFORM_LINUX:
            command = self._linux_command(alert)
        elif self.platform == PLATFORM_MACOS:
            command = self._macos_command(alert)
        else:
            raise DesktopNotifyError(
                f"desktop notifications not supported on {self.platform}"
            )

        self._run(command)
        log.debug("desktop_notification_sent", alert_id=alert.id, platform=self.platform)

    def _linux_command(self, alert: Alert) -> List[str]:
        args = [
            "notify-send",
            "-u", _URGENCY.get(alert.level, "low"),
            "-t", str(self._config.timeout * 1000),  # milliseconds
            "-a", APP_NAME,
        ]
        icon = _ICONS.get(alert.level)
        if icon:
            args.extend(["-i", icon])
        args.extend([f"Cluster Alert: {alert.title}", alert.message])
        return args

    def _macos_command(self, alert: Alert) -> List[str]:
        script = (
            f'display notification "{_applescript_quote(alert.message)}" '
            f'with title "Cluster Alert: {_applescript_quote(alert.title)}" '
            'sound name "Glass"'
        )
        return ["osascript", "-e", script]

    def _run(self, command: List[str]) -> None:
        try:
            subprocess.run(
                command,
                check=True,
                capture_output=True,
                timeout=COMMAND_TIMEOUT,
            )
        except subprocess.CalledProcessError as e:
            raise DesktopNotifyError(
                f"{command[0]} exited with status {e.returncode}"
            ) from e
        except (OSError, subprocess.SubprocessError) as e:
            raise DesktopNotifyError(f"{command[0]} failed: {e}") from e

    def configure(self, settings: Mapping[str, Any]) -> None:
        updates = typed_updates(
            settings,
            {"enabled": bool, "min_alert_level": int, "timeout": int},
        )
        self._config = self._config.model_copy(update=updates)
