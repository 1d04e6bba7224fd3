"""Notification dispatch across all configured channels."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Tuple

import structlog

from clusterwatch.models.alert import Alert
from clusterwatch.notifications.base import DispatchResult, NotificationChannel
from clusterwatch.notifications.bell import TerminalBellChannel
from clusterwatch.notifications.config import (
    NotificationConfig,
    load_notification_config,
    save_notification_config,
)
from clusterwatch.notifications.desktop import DesktopNotifyChannel
from clusterwatch.notifications.exceptions import AlertLogError
from clusterwatch.notifications.log_file import LogFileChannel
from clusterwatch.notifications.logger import AlertLogger
from clusterwatch.notifications.webhook import WebhookChannel

log = structlog.get_logger()


class ChannelSet:
    """Channels built from one configuration.

    ``users`` counts dispatches holding the set. A retired set is closed by
    whoever drops the last use: ``update_config`` when idle, else the last
    dispatch to finish.
    """

    def __init__(self, channels: Dict[str, NotificationChannel]) -> None:
        self.channels = channels
        self.users = 0
        self.retired = False

    def close(self) -> None:
        """Release channel resources (HTTP connections)."""
        for channel in self.channels.values():
            if isinstance(channel, WebhookChannel):
                channel.close()


class NotificationManager:
    """Dispatches alerts to every enabled channel.

    For each alert that passes the global enable flag and minimum level:
    1. The AlertLogger writes a record (always before any channel runs)
    2. Every enabled channel is notified concurrently
    3. The call returns once all channels have finished or failed

    A channel failure is logged and reported in the DispatchResult; it never
    affects sibling channels and never raises out of ``notify``.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        config: Optional[NotificationConfig] = None,
        cluster_name: str = "clusterwatch",
        alert_logger: Optional[AlertLogger] = None,
    ) -> None:
        """Initialize the notification manager.

        Args:
            config_path: JSON config file; read when ``config`` is not given,
                written by ``update_config`` (None = per-user default)
            config: Initial configuration, bypassing the file
            cluster_name: Cluster name passed to the webhook channel
            alert_logger: Alert logger to use instead of one built from config
        """
        self.config_path = config_path
        self.cluster_name = cluster_name

        if config is None:
            config = load_notification_config(config_path)

        # Guards _config, _channels (and its use count) and _alert_log; never
        # held while dispatching
        self._lock = threading.Lock()
        self._config = config
        self._alert_log = alert_logger or AlertLogger(config.log_file.log_path)
        self._custom_logger = alert_logger is not None
        self._channels = ChannelSet(self._build_channels(config))

        log.debug(
            "notification_manager_initialized",
            channels=list(self._channels.channels),
            enabled=config.enable_notifications,
        )

    def _build_channels(self, config: NotificationConfig) -> Dict[str, NotificationChannel]:
        channels: List[NotificationChannel] = [
            TerminalBellChannel(config.terminal_bell),
            LogFileChannel(config.log_file),
            DesktopNotifyChannel(config.desktop_notify),
            WebhookChannel(config.webhook, cluster_name=self.cluster_name),
        ]
        return {channel.name: channel for channel in channels}

    def _acquire(self) -> Tuple[NotificationConfig, ChannelSet, AlertLogger]:
        with self._lock:
            self._channels.users += 1
            return self._config, self._channels, self._alert_log

    def _release(self, channel_set: ChannelSet) -> None:
        with self._lock:
            channel_set.users -= 1
            idle = channel_set.retired and channel_set.users == 0
        if idle:
            channel_set.close()
            log.debug("notification_channels_closed", reason="last_dispatch_done")

    def _retire(self, channel_set: ChannelSet) -> bool:
        """Mark a replaced set retired. Caller holds the lock.

        Returns:
            True if no dispatch holds the set, so the caller must close it.
        """
        channel_set.retired = True
        return channel_set.users == 0

    def notify(self, alert: Alert) -> DispatchResult:
        """Log an alert and send it through all enabled channels.

        Args:
            alert: Alert to dispatch

        Returns:
            DispatchResult describing what was logged, delivered and failed.
        """
        config, channel_set, alert_log = self._acquire()
        try:
            return self._dispatch(alert, config, channel_set.channels, alert_log)
        finally:
            self._release(channel_set)

    def _dispatch(
        self,
        alert: Alert,
        config: NotificationConfig,
        channels: Dict[str, NotificationChannel],
        alert_log: AlertLogger,
    ) -> DispatchResult:
        result = DispatchResult(alert_id=alert.id)

        if not config.enable_notifications or alert.level < config.min_alert_level:
            result.skipped = True
            return result

        # Log first so the log is a superset of what channels attempted
        try:
            alert_log.log_alert(alert)
            result.logged = True
        except AlertLogError as e:
            result.log_error = str(e)
            log.error("alert_log_failed", alert_id=alert.id, error=str(e))

        enabled = [(name, ch) for name, ch in channels.items() if ch.is_enabled()]
        if not enabled:
            return result

        with ThreadPoolExecutor(
            max_workers=len(enabled),
            thread_name_prefix="notify",
        ) as executor:
            futures = {executor.submit(ch.notify, alert): name for name, ch in enabled}
            for future in as_completed(futures):
                name = futures[future]
                try:
                    future.result()
                    result.delivered.append(name)
                except Exception as e:
                    result.failed[name] = str(e)
                    log.error(
                        "channel_notify_failed",
                        channel=name,
                        alert_id=alert.id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        return result

    def update_config(self, config: NotificationConfig) -> None:
        """Replace the configuration and rebuild every channel.

        The in-memory swap happens first and is kept even if persisting the
        file fails. The replaced channels are closed once no dispatch still
        uses them.

        Raises:
            ConfigurationError: If the new config could not be written to disk.
        """
        with self._lock:
            previous = self._config
            replaced = self._channels
            self._config = config
            self._channels = ChannelSet(self._build_channels(config))
            close_now = self._retire(replaced)
            if (
                not self._custom_logger
                and config.log_file.log_path != previous.log_file.log_path
            ):
                self._alert_log = AlertLogger(config.log_file.log_path)

        if close_now:
            replaced.close()
            log.debug("notification_channels_closed", reason="replaced")

        log.info(
            "notification_config_updated",
            enabled=config.enable_notifications,
            min_alert_level=config.min_alert_level,
        )

        save_notification_config(config, self.config_path)

    def get_config(self) -> NotificationConfig:
        """Return the current configuration snapshot."""
        with self._lock:
            return self._config

    def get_channels(self) -> Dict[str, NotificationChannel]:
        """Return the current channels keyed by name."""
        with self._lock:
            return dict(self._channels.channels)

    def close(self) -> None:
        """Release channel resources (HTTP connections).

        Dispatches still in flight finish first on their own channels.
        """
        with self._lock:
            current = self._channels
            close_now = not current.retired and self._retire(current)
        if close_now:
            current.close()
