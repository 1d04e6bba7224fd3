"""Notification subsystem: dispatcher, channels and alert log."""

from clusterwatch.notifications.base import DispatchResult, NotificationChannel
from clusterwatch.notifications.bell import TerminalBellChannel
from clusterwatch.notifications.config import (
    DesktopNotifyConfig,
    LogFileConfig,
    NotificationConfig,
    TerminalBellConfig,
    WebhookConfig,
    load_notification_config,
    save_notification_config,
)
from clusterwatch.notifications.desktop import DesktopNotifyChannel
from clusterwatch.notifications.exceptions import (
    AlertLogError,
    ChannelError,
    DesktopNotifyError,
    NotificationError,
    WebhookDeliveryError,
)
from clusterwatch.notifications.log_file import LogFileChannel
from clusterwatch.notifications.logger import AlertLogger
from clusterwatch.notifications.manager import NotificationManager
from clusterwatch.notifications.webhook import WebhookChannel

__all__ = [
    "AlertLogError",
    "AlertLogger",
    "ChannelError",
    "DesktopNotifyChannel",
    "DesktopNotifyConfig",
    "DesktopNotifyError",
    "DispatchResult",
    "LogFileChannel",
    "LogFileConfig",
    "NotificationChannel",
    "NotificationConfig",
    "NotificationError",
    "NotificationManager",
    "TerminalBellChannel",
    "TerminalBellConfig",
    "WebhookChannel",
    "WebhookConfig",
    "WebhookDeliveryError",
    "load_notification_config",
    "save_notification_config",
]
