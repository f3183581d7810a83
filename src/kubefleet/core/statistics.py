# src/kubefleet/core/statistics.py
"""
Folds an enriched node set into fleet-wide counts and utilization ratios.
"""

from collections import Counter
from typing import Iterable, List, Tuple

from kubefleet.models.node import EnrichedNode, NodeStatus
from kubefleet.models.stats import (
    ClusterStats,
    ClusterSummary,
    PodUsage,
    ResourceTotals,
    ResourceUsage,
    StatusHistogram,
)
from kubefleet.utils.k8s_utils import normalize_memory


def utilization(allocated: float, total: float) -> float:
    """``allocated / total`` as a percentage rounded to two decimals; 0 when total is 0."""
    if total <= 0:
        return 0.0
    return round(allocated / total * 100, 2)


def partition_online(nodes: Iterable[EnrichedNode]) -> Tuple[List[EnrichedNode], List[EnrichedNode]]:
    """Splits nodes into (online, offline). Every node lands in exactly one list."""
    online, offline = [], []
    for node in nodes:
        (online if node.is_online else offline).append(node)
    return online, offline


def cluster_stats(nodes: List[EnrichedNode]) -> ClusterStats:
    """
    Counts and the status histogram cover every node, including those no
    longer in the cluster. Capacity and allocation cover live nodes only.
    """
    counts = Counter(node.status for node in nodes)
    live = [node for node in nodes if node.in_cluster]

    cpu_total = float(sum(node.cpu_cores for node in live))
    cpu_allocated = round(sum(node.allocated_cpu for node in live), 4)
    memory_total = round(sum(normalize_memory(node.total_memory) for node in live), 4)
    memory_allocated = round(sum(node.allocated_memory for node in live), 4)
    pods_total = sum(node.max_pods for node in live)
    pods_current = sum(node.current_pods for node in live)

    return ClusterStats(
        cluster=ClusterSummary(
            total_nodes=len(nodes),
            ready_nodes=sum(1 for node in nodes if node.is_ready),
            schedulable_nodes=sum(1 for node in nodes if node.is_schedulable),
        ),
        node_status=StatusHistogram(
            active=counts[NodeStatus.ACTIVE],
            inactive=counts[NodeStatus.INACTIVE],
            maintenance=counts[NodeStatus.MAINTENANCE],
            pending=counts[NodeStatus.PENDING],
            not_ready=counts[NodeStatus.NOT_READY],
        ),
        resources=ResourceTotals(
            cpu=ResourceUsage(total=cpu_total, allocated=cpu_allocated, utilization=utilization(cpu_allocated, cpu_total)),
            memory=ResourceUsage(
                total=memory_total,
                allocated=memory_allocated,
                utilization=utilization(memory_allocated, memory_total),
            ),
            pods=PodUsage(
                max_total=pods_total,
                current_total=pods_current,
                utilization=utilization(pods_current, pods_total),
            ),
        ),
    )
