"""Exceptions raised by notification channels and the alert logger.

All inherit from NotificationError so the dispatcher can isolate any
channel failure with a single handler.
"""


class NotificationError(Exception):
    """Base exception for notification delivery and persistence."""

    pass


class ChannelError(NotificationError):
    """A channel failed to deliver an alert."""

    pass


class WebhookDeliveryError(ChannelError):
    """Webhook POST failed after exhausting all attempts."""

    def __init__(self, message: str, attempts: int = 1) -> None:
        super().__init__(message)
        self.attempts = attempts


class DesktopNotifyError(ChannelError):
    """Desktop notification is unavailable or the platform call failed."""

    pass


class AlertLogError(NotificationError):
    """The alert log could not be written."""

    pass
