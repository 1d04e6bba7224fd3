"""Wiring of the monitoring core from application settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import structlog

from clusterwatch.alerts.store import AlertStore
from clusterwatch.cluster.client import ClusterClient
from clusterwatch.config.settings import ClusterwatchSettings
from clusterwatch.monitoring.engine import HealthMonitor
from clusterwatch.notifications.manager import NotificationManager

log = structlog.get_logger()


@dataclass
class MonitoringCore:
    """The alert store, dispatcher and health monitor wired together.

    The UI layer registers its listeners on ``store`` and reads snapshots
    from ``monitor``; settings screens go through ``notifications``.
    """

    store: AlertStore
    notifications: NotificationManager
    monitor: HealthMonitor

    def start(self) -> None:
        self.monitor.start()

    def close(self) -> None:
        """Stop the monitor first so no new alerts arrive during teardown."""
        self.monitor.stop()
        self.store.close()
        self.notifications.close()
        log.info("monitoring_core_closed")


def build_core(
    client: ClusterClient,
    settings: ClusterwatchSettings,
    notifications: Optional[NotificationManager] = None,
) -> MonitoringCore:
    """Build the monitoring core for a cluster client.

    Args:
        client: Cluster query client used by the health checks
        settings: Application settings
        notifications: Dispatcher to use instead of one built from settings

    Returns:
        MonitoringCore with the dispatcher installed as the store's notifier.
        The monitor is not started.
    """
    store = AlertStore(max_alerts=settings.max_alerts)

    if notifications is None:
        notifications = NotificationManager(
            config_path=settings.notification_config_path,
            cluster_name=settings.cluster_name,
        )
    store.set_notifier(notifications)

    dismiss_after = None
    if settings.warning_dismiss_after > 0:
        dismiss_after = timedelta(seconds=settings.warning_dismiss_after)

    monitor = HealthMonitor(
        client,
        store,
        interval=settings.check_interval,
        warning_dismiss_after=dismiss_after,
        cluster_alerts=settings.cluster_alerts,
        repeat_alerts=settings.repeat_health_alerts,
    )

    log.info(
        "monitoring_core_built",
        cluster_name=settings.cluster_name,
        check_interval=settings.check_interval,
        max_alerts=settings.max_alerts,
    )
    return MonitoringCore(store=store, notifications=notifications, monitor=monitor)
