"""Cluster query client boundary.

The health checks only depend on three read operations. The concrete
client (REST, CLI wrapper, mock) lives outside this package; anything that
satisfies ``ClusterClient`` can be handed to the HealthMonitor.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence, runtime_checkable

from clusterwatch.models.cluster import ClusterStats, Job, Node


class ClusterQueryError(Exception):
    """Raised by a cluster client when a query cannot be answered."""

    pass


@runtime_checkable
class ClusterClient(Protocol):
    """Protocol for point-in-time cluster queries.

    Every method may raise. The monitor maps any failure to an UNKNOWN
    health status; a client error is never a process fault.
    """

    def list_nodes(self) -> List[Node]:
        """Return all nodes with their current state."""
        ...

    def list_jobs(self, states: Optional[Sequence[str]] = None) -> List[Job]:
        """Return jobs, optionally filtered to the given states."""
        ...

    def get_stats(self) -> Optional[ClusterStats]:
        """Return aggregate utilization, or None if metrics are unavailable."""
        ...
