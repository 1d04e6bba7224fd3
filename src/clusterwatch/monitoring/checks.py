"""Built-in health checks.

Each check takes a ClusterClient and returns a HealthCheck. Client failures
become UNKNOWN results with the error in the message; they never raise.
All three follow the same idiom: derive one number, then classify it with a
two-tier HealthThreshold.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from clusterwatch.cluster.client import ClusterClient
from clusterwatch.models.cluster import JOB_STATE_PENDING
from clusterwatch.models.enums import HealthStatus
from clusterwatch.models.health import HealthCheck, HealthThreshold

CheckFunc = Callable[[ClusterClient], Optional[HealthCheck]]

# Percent of nodes down or draining
NODE_THRESHOLD = HealthThreshold(warning_max=10.0, critical_max=25.0)
# Absolute number of pending jobs
QUEUE_THRESHOLD = HealthThreshold(warning_max=100.0, critical_max=500.0)
# max(CPU %, memory %)
UTILIZATION_THRESHOLD = HealthThreshold(warning_max=90.0, critical_max=95.0)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def check_nodes(client: ClusterClient) -> HealthCheck:
    """Percentage of nodes that are down or draining."""
    check = HealthCheck(
        name="nodes",
        description="Monitor node availability and health",
        threshold=NODE_THRESHOLD,
        last_check=_now(),
    )

    try:
        nodes = client.list_nodes()
    except Exception as e:
        check.status = HealthStatus.UNKNOWN
        check.message = f"Failed to get node list: {e}"
        return check

    total = len(nodes)
    if total == 0:
        check.status = HealthStatus.CRITICAL
        check.message = "No nodes found in cluster"
        return check

    # A node that is both down and draining counts once, as down
    down = sum(1 for node in nodes if node.is_down)
    drain = sum(1 for node in nodes if node.is_draining and not node.is_down)
    unavailable_pct = (down + drain) / total * 100

    check.status = check.threshold.evaluate(unavailable_pct)
    if check.status == HealthStatus.HEALTHY:
        check.message = (
            f"All nodes healthy ({total} total, {down} down, {drain} drain)"
        )
    else:
        check.message = (
            f"{unavailable_pct:.1f}% of nodes unavailable "
            f"({down} down, {drain} drain out of {total} total)"
        )
    return check


def check_queue(client: ClusterClient) -> HealthCheck:
    """Number of jobs waiting in the queue."""
    check = HealthCheck(
        name="queue",
        description="Monitor job queue depth and wait times",
        threshold=QUEUE_THRESHOLD,
        last_check=_now(),
    )

    try:
        jobs = client.list_jobs(states=[JOB_STATE_PENDING])
    except Exception as e:
        check.status = HealthStatus.UNKNOWN
        check.message = f"Failed to get job list: {e}"
        return check

    pending = float(len(jobs))
    check.status = check.threshold.evaluate(pending)
    if check.status == HealthStatus.HEALTHY:
        check.message = f"Queue healthy with {pending:.0f} pending jobs"
    else:
        check.message = (
            f"{pending:.0f} pending jobs "
            f"(threshold: {check.threshold.critical_max:.0f})"
        )
    return check


def check_utilization(client: ClusterClient) -> HealthCheck:
    """Highest of CPU and memory utilization."""
    check = HealthCheck(
        name="utilization",
        description="Monitor cluster resource utilization",
        threshold=UTILIZATION_THRESHOLD,
        last_check=_now(),
    )

    try:
        stats = client.get_stats()
    except Exception as e:
        check.status = HealthStatus.UNKNOWN
        check.message = f"Failed to get cluster metrics: {e}"
        return check

    if stats is None:
        check.status = HealthStatus.UNKNOWN
        check.message = "Cluster metrics not available"
        return check

    utilization = max(stats.cpu_usage, stats.memory_usage)
    check.status = check.threshold.evaluate(utilization)
    check.message = (
        f"Resource utilization: CPU {stats.cpu_usage:.1f}%, "
        f"Memory {stats.memory_usage:.1f}%"
    )
    return check


DEFAULT_CHECKS: Dict[str, CheckFunc] = {
    "nodes": check_nodes,
    "queue": check_queue,
    "utilization": check_utilization,
}
