"""Shared enumerations for the clusterwatch models."""

from enum import Enum, IntEnum
from typing import Iterable


class HealthStatus(str, Enum):
    """Health status of a cluster component or of the whole cluster."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"
    UNKNOWN = "unknown"

    @property
    def severity(self) -> int:
        """Rank used for aggregation.

        UNKNOWN outranks HEALTHY: an unreachable check must not be reported
        as healthy.
        """
        return _HEALTH_SEVERITY[self]

    @classmethod
    def worst(cls, statuses: Iterable["HealthStatus"]) -> "HealthStatus":
        """Return the most severe status, or HEALTHY for an empty iterable."""
        worst = cls.HEALTHY
        for status in statuses:
            if status.severity > worst.severity:
                worst = status
        return worst


_HEALTH_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.UNKNOWN: 1,
    HealthStatus.WARNING: 2,
    HealthStatus.CRITICAL: 3,
}


class AlertLevel(IntEnum):
    """Severity of an alert. Ordinal values are part of the webhook payload."""

    INFO = 0
    WARNING = 1
    ERROR = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        """Upper-case name used in log records and webhook payloads."""
        return self.name

    @classmethod
    def from_health_status(cls, status: HealthStatus) -> "AlertLevel":
        """Map a health status to the alert level that mirrors it."""
        if status == HealthStatus.CRITICAL:
            return cls.CRITICAL
        if status == HealthStatus.WARNING:
            return cls.WARNING
        return cls.INFO
