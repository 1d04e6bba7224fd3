"""Data models for clusterwatch."""

from .alert import Alert, AlertFilter, AlertLogEntry, AlertStats
from .cluster import ClusterStats, Job, Node
from .enums import AlertLevel, HealthStatus
from .health import ClusterHealth, HealthCheck, HealthIssue, HealthThreshold

__all__ = [
    "Alert",
    "AlertFilter",
    "AlertLevel",
    "AlertLogEntry",
    "AlertStats",
    "ClusterHealth",
    "ClusterStats",
    "HealthCheck",
    "HealthIssue",
    "HealthStatus",
    "HealthThreshold",
    "Job",
    "Node",
]
