"""Cluster data-access boundary."""

from clusterwatch.cluster.client import ClusterClient, ClusterQueryError

__all__ = ["ClusterClient", "ClusterQueryError"]
