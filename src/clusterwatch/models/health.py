"""Health check models.

Provides the threshold model used by every check, the per-check result,
the longer-lived issue record and the aggregated cluster snapshot.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from .enums import HealthStatus


@dataclass(frozen=True)
class HealthThreshold:
    """Two-sided warning and critical bounds for a derived metric.

    A bound left as None means "no limit on that side". Critical bounds are
    evaluated before warning bounds, so when the bands overlap the worse
    status wins.

    Attributes:
        warning_min: Values below this are at least WARNING
        warning_max: Values above this are at least WARNING
        critical_min: Values below this are CRITICAL
        critical_max: Values above this are CRITICAL
    """

    warning_min: Optional[float] = None
    warning_max: Optional[float] = None
    critical_min: Optional[float] = None
    critical_max: Optional[float] = None

    def evaluate(self, value: float) -> HealthStatus:
        """Classify a metric value against the configured bounds."""
        if self.critical_max is not None and value > self.critical_max:
            return HealthStatus.CRITICAL
        if self.critical_min is not None and value < self.critical_min:
            return HealthStatus.CRITICAL
        if self.warning_max is not None and value > self.warning_max:
            return HealthStatus.WARNING
        if self.warning_min is not None and value < self.warning_min:
            return HealthStatus.WARNING
        return HealthStatus.HEALTHY


@dataclass
class HealthCheck:
    """Result of one named health check.

    Identity is the name. The monitor overwrites the stored result on every
    cycle and carries the cumulative check count forward.
    """

    name: str
    description: str = ""
    status: HealthStatus = HealthStatus.UNKNOWN
    message: str = ""
    last_check: Optional[datetime] = None
    check_count: int = 0
    threshold: HealthThreshold = field(default_factory=HealthThreshold)

    @property
    def needs_alert(self) -> bool:
        """WARNING and CRITICAL results are turned into alerts."""
        return self.status in (HealthStatus.WARNING, HealthStatus.CRITICAL)


@dataclass
class HealthIssue:
    """A deduplicated problem that persists across evaluation cycles."""

    id: str
    component: str
    severity: HealthStatus
    title: str
    description: str
    first_seen: datetime
    last_seen: datetime
    count: int = 1
    resolved: bool = False

    def add_occurrence(self, timestamp: datetime) -> None:
        """Record another cycle in which the problem was observed."""
        self.count += 1
        if timestamp > self.last_seen:
            self.last_seen = timestamp


@dataclass
class ClusterHealth:
    """Snapshot of the whole cluster's health."""

    overall_status: HealthStatus = HealthStatus.UNKNOWN
    checks: Dict[str, HealthCheck] = field(default_factory=dict)
    issues: List[HealthIssue] = field(default_factory=list)
    last_updated: Optional[datetime] = None

    def copy(self) -> "ClusterHealth":
        """Return a deep copy safe to hand to other threads."""
        return copy.deepcopy(self)
