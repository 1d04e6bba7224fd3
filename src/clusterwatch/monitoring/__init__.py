"""Health check engine and built-in checks."""

from clusterwatch.monitoring.checks import (
    DEFAULT_CHECKS,
    NODE_THRESHOLD,
    QUEUE_THRESHOLD,
    UTILIZATION_THRESHOLD,
    CheckFunc,
    check_nodes,
    check_queue,
    check_utilization,
)
from clusterwatch.monitoring.engine import HealthMonitor

__all__ = [
    "CheckFunc",
    "DEFAULT_CHECKS",
    "HealthMonitor",
    "NODE_THRESHOLD",
    "QUEUE_THRESHOLD",
    "UTILIZATION_THRESHOLD",
    "check_nodes",
    "check_queue",
    "check_utilization",
]
