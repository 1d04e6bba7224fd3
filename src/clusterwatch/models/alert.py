"""Alert models."""

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import AlertLevel


class Alert(BaseModel):
    """A timestamped, leveled notice tracked until acknowledged or dismissed.

    Producers create alerts freely; once handed to the AlertStore the store
    owns the stored copy and is the only thing that mutates it.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default="", description="Assigned by the store when empty")
    level: AlertLevel = Field(default=AlertLevel.INFO, description="Alert severity")
    title: str = Field(..., description="Short headline")
    message: str = Field(default="", description="Human-readable explanation")
    source: str = Field(default="", description="Originating subsystem, e.g. 'nodes'")
    timestamp: Optional[datetime] = Field(
        default=None, description="Assigned by the store on insertion"
    )
    acknowledged: bool = Field(default=False)
    auto_dismiss: bool = Field(default=False)
    dismiss_after: timedelta = Field(
        default=timedelta(0), description="Delay before auto-dismissal"
    )

    @staticmethod
    def new_id(source: str) -> str:
        """Build an alert id of the form ``<source>-<nanosecond timestamp>``."""
        return f"{source}-{time.time_ns()}"


class AlertLogEntry(BaseModel):
    """Persisted projection of an alert, one JSON object per log line."""

    timestamp: Optional[datetime]
    level: str
    title: str
    message: str
    source: str
    id: str

    @classmethod
    def from_alert(cls, alert: Alert) -> "AlertLogEntry":
        return cls(
            timestamp=alert.timestamp,
            level=alert.level.label,
            title=alert.title,
            message=alert.message,
            source=alert.source,
            id=alert.id,
        )


@dataclass
class AlertStats:
    """Counts over the alerts currently held by the store."""

    total: int = 0
    info: int = 0
    warning: int = 0
    error: int = 0
    critical: int = 0
    acknowledged: int = 0
    unacknowledged: int = 0


@dataclass(frozen=True)
class AlertFilter:
    """Criteria for selecting alerts. Empty or None criteria match everything.

    Attributes:
        levels: Match only these levels
        sources: Match only these sources
        acknowledged: Match only alerts with this acknowledged flag
        since: Match alerts stamped at or after this time
        until: Match alerts stamped at or before this time
    """

    levels: FrozenSet[AlertLevel] = field(default_factory=frozenset)
    sources: FrozenSet[str] = field(default_factory=frozenset)
    acknowledged: Optional[bool] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None

    def matches(self, alert: Alert) -> bool:
        if self.levels and alert.level not in self.levels:
            return False
        if self.sources and alert.source not in self.sources:
            return False
        if self.acknowledged is not None and alert.acknowledged != self.acknowledged:
            return False
        if alert.timestamp is not None:
            if self.since is not None and alert.timestamp < self.since:
                return False
            if self.until is not None and alert.timestamp > self.until:
                return False
        return True
