"""Base types for notification channels.

Provides the NotificationChannel Protocol implemented by every delivery
mechanism, and the per-alert dispatch result reported by the
NotificationManager.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from clusterwatch.models.alert import Alert


@runtime_checkable
class NotificationChannel(Protocol):
    """Protocol for alert delivery channels.

    Channels are held in a name-keyed mapping by the dispatcher, which
    iterates it rather than branching on channel type. Each channel:
    - Applies its own minimum-level gate inside ``notify``
    - Fails independently (one failure doesn't affect other channels)
    - Reports itself disabled when unavailable on the current platform
    """

    @property
    def name(self) -> str:
        """Unique channel identifier (e.g., 'terminal_bell', 'webhook')."""
        ...

    def is_enabled(self) -> bool:
        """Whether the channel is enabled by config and usable on this host."""
        ...

    def notify(self, alert: Alert) -> None:
        """Deliver an alert.

        Raises:
            ChannelError: If delivery fails.
        """
        ...

    def configure(self, settings: Mapping[str, Any]) -> None:
        """Update channel settings from a key/value mapping.

        Unknown keys and values of the wrong type are ignored.
        """
        ...


def typed_updates(
    settings: Mapping[str, Any], fields: Mapping[str, type]
) -> Dict[str, Any]:
    """Pick the entries of ``settings`` whose value matches the expected type.

    Used by ``configure`` implementations. Booleans are not accepted where an
    int is expected.

    Args:
        settings: Raw key/value settings, e.g. from a settings form.
        fields: Accepted keys mapped to their expected type.

    Returns:
        Dict of accepted updates.
    """
    updates: Dict[str, Any] = {}
    for key, expected in fields.items():
        if key not in settings:
            continue
        value = settings[key]
        if expected is int and isinstance(value, bool):
            continue
        if isinstance(value, expected):
            updates[key] = value
    return updates


@dataclass
class DispatchResult:
    """Outcome of dispatching one alert through the NotificationManager."""

    alert_id: str
    """Id of the dispatched alert."""

    skipped: bool = False
    """True when the global gate rejected the alert (nothing logged or sent)."""

    logged: bool = False
    """Whether the alert log record was written."""

    log_error: Optional[str] = None
    """Persistence failure message, if the alert log write failed."""

    delivered: List[str] = field(default_factory=list)
    """Names of channels whose notify call returned without error."""

    failed: Dict[str, str] = field(default_factory=dict)
    """Channel name to error message for channels that failed."""

    @property
    def success(self) -> bool:
        """True when the alert was logged and no channel failed."""
        return not self.skipped and self.logged and not self.failed
