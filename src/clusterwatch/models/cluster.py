"""Cluster data returned by the cluster query client.

These mirror the subset of scheduler data the built-in health checks read.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Node states
NODE_STATE_IDLE = "IDLE"
NODE_STATE_ALLOCATED = "ALLOCATED"
NODE_STATE_MIXED = "MIXED"
NODE_STATE_DOWN = "DOWN"
NODE_STATE_DRAIN = "DRAIN"
NODE_STATE_DRAINING = "DRAINING"
NODE_STATE_RESERVED = "RESERVED"
NODE_STATE_MAINTENANCE = "MAINTENANCE"

# Job states
JOB_STATE_PENDING = "PENDING"
JOB_STATE_RUNNING = "RUNNING"
JOB_STATE_COMPLETED = "COMPLETED"
JOB_STATE_FAILED = "FAILED"
JOB_STATE_CANCELLED = "CANCELLED"


class Node(BaseModel):
    """A compute node."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    state: str = Field(default=NODE_STATE_IDLE, description="Scheduler state, may be compound")
    partitions: List[str] = Field(default_factory=list)
    cpus_total: int = 0
    cpus_allocated: int = 0
    memory_total_mb: int = 0
    reason: Optional[str] = None

    @property
    def state_parts(self) -> List[str]:
        """Split compound states like ``IDLE+DRAIN`` into their components."""
        return [part.strip().upper() for part in self.state.split("+") if part.strip()]

    @property
    def is_down(self) -> bool:
        return NODE_STATE_DOWN in self.state_parts

    @property
    def is_draining(self) -> bool:
        parts = self.state_parts
        return NODE_STATE_DRAIN in parts or NODE_STATE_DRAINING in parts


class Job(BaseModel):
    """A scheduler job."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = ""
    state: str = JOB_STATE_PENDING
    partition: Optional[str] = None
    user: Optional[str] = None


class ClusterStats(BaseModel):
    """Aggregate utilization figures for the cluster."""

    model_config = ConfigDict(from_attributes=True)

    cpu_usage: float = Field(default=0.0, description="CPU utilization percent")
    memory_usage: float = Field(default=0.0, description="Memory utilization percent")
    total_jobs: int = 0
    running_jobs: int = 0
    pending_jobs: int = 0
    total_nodes: int = 0
    active_nodes: int = 0
    idle_nodes: int = 0
    down_nodes: int = 0
