# src/kubefleet/core/enrichment.py
"""
Merges a persisted worker-node record with the live cluster object, the pods
scheduled on it and an optional metrics snapshot into one ``EnrichedNode``.

Precedence is explicit: facts read from the live node replace the persisted
values, derived fields (allocation, pod count, utilization) are recomputed,
and store-owned fields (id, creation time, operator-set status) are kept.
"""

import logging
from typing import Any, Dict, List, Optional

from kubefleet.core.config import config
from kubefleet.models.node import EnrichedNode, NodeStatus, NodeUsage, WorkerNode
from kubefleet.utils.k8s_utils import normalize_memory, normalize_quantity, sum_container_requests

logger = logging.getLogger(__name__)

# Statuses set by an operator; observed readiness does not overwrite them.
OPERATOR_STATUSES = (NodeStatus.MAINTENANCE, NodeStatus.PENDING)


def condition_map(live) -> Dict[str, str]:
    """Returns the live conditions as a ``{type: status}`` lookup."""
    status = getattr(live, "status", None)
    conditions = getattr(status, "conditions", None) or []
    return {c.type: c.status for c in conditions if getattr(c, "type", None)}


def _address(addresses, address_type: str) -> Optional[str]:
    for addr in addresses:
        if getattr(addr, "type", None) == address_type and getattr(addr, "address", None):
            return addr.address
    return None


def _taint_dicts(taints) -> List[Dict[str, Any]]:
    return [
        {k: v for k, v in (("key", t.key), ("value", getattr(t, "value", None)), ("effect", t.effect)) if v is not None}
        for t in taints or []
    ]


def parse_live_node(live) -> Dict[str, Any]:
    """
    Extracts the WorkerNode-shaped facts from a live node object.

    Returns a dict keyed by WorkerNode field names, suitable for building a
    new record or overlaying an existing one.
    """
    metadata = live.metadata
    spec = getattr(live, "spec", None)
    status = getattr(live, "status", None)

    addresses = getattr(status, "addresses", None) or []
    capacity = getattr(status, "capacity", None) or {}
    node_info = getattr(status, "node_info", None)

    max_pods = int(normalize_quantity(capacity.get("pods"))) or config.DEFAULT_MAX_PODS

    return {
        "name": metadata.name,
        "hostname": _address(addresses, "Hostname") or metadata.name,
        "ip_address": _address(addresses, "InternalIP") or "",
        "cpu_cores": int(normalize_quantity(capacity.get("cpu"))),
        "cpu_architecture": getattr(node_info, "architecture", None) or "amd64",
        "total_memory": capacity.get("memory") or "0",
        "total_storage": capacity.get("ephemeral-storage") or "0",
        "operating_system": getattr(node_info, "operating_system", None) or "linux",
        "kernel_version": getattr(node_info, "kernel_version", None),
        "os_image": getattr(node_info, "os_image", None),
        "container_runtime": getattr(node_info, "container_runtime_version", None),
        "kubelet_version": getattr(node_info, "kubelet_version", None),
        "max_pods": max_pods,
        "labels": dict(metadata.labels or {}),
        "taints": _taint_dicts(getattr(spec, "taints", None)),
        "is_ready": condition_map(live).get("Ready") == "True",
        "is_schedulable": not bool(getattr(spec, "unschedulable", False)),
    }


def compute_allocation(pods) -> Dict[str, float]:
    """
    Sums container CPU/memory requests over the pods actually scheduled on a node.

    The control plane's own allocatable figures can lag scheduling, so the
    pod specs are the source of truth here.
    """
    cpu = 0.0
    memory = 0.0
    for pod in pods:
        spec = getattr(pod, "spec", None)
        totals = sum_container_requests(getattr(spec, "containers", None))
        cpu += totals["cpu"]
        memory += totals["memory"]
    return {"allocated_cpu": round(cpu, 4), "allocated_memory": round(memory, 4), "current_pods": len(pods)}


def _percentage(used: float, total: float) -> float:
    if total <= 0:
        return 0.0
    return round(max(used, 0.0) / total * 100, 2)


def compute_utilization(usage: Optional[NodeUsage], capacity: Dict[str, str]) -> Dict[str, Any]:
    """Usage as a percentage of capacity; every field is None without a snapshot."""
    if usage is None:
        return {
            "cpu_usage_cores": None,
            "memory_usage_gb": None,
            "cpu_utilization": None,
            "memory_utilization": None,
            "metrics_available": False,
        }
    return {
        "cpu_usage_cores": usage.cpu_cores,
        "memory_usage_gb": usage.memory_gb,
        "cpu_utilization": _percentage(usage.cpu_cores, normalize_quantity(capacity.get("cpu"))),
        "memory_utilization": _percentage(usage.memory_gb, normalize_memory(capacity.get("memory"))),
        "metrics_available": True,
    }


def derive_status(current: NodeStatus, is_ready: bool) -> NodeStatus:
    if current in OPERATOR_STATUSES:
        return current
    return NodeStatus.ACTIVE if is_ready else NodeStatus.NOT_READY


def merge_node(persisted: WorkerNode, live, pods, usage: Optional[NodeUsage]) -> EnrichedNode:
    """Builds the enriched view. Pure function of its inputs."""
    facts = parse_live_node(live)
    status = getattr(live, "status", None)
    node_info = getattr(status, "node_info", None)
    capacity = dict(getattr(status, "capacity", None) or {})

    merged = persisted.model_dump()
    merged.update({k: v for k, v in facts.items() if k != "name"})
    merged.update(compute_allocation(pods))
    merged.update(compute_utilization(usage, capacity))
    merged["status"] = derive_status(persisted.status, facts["is_ready"])
    merged.update(
        conditions=condition_map(live),
        capacity=capacity,
        allocatable=dict(getattr(status, "allocatable", None) or {}),
        addresses=[
            {"type": a.type, "address": a.address} for a in (getattr(status, "addresses", None) or [])
        ],
        node_info={
            "architecture": getattr(node_info, "architecture", None),
            "operating_system": getattr(node_info, "operating_system", None),
            "kernel_version": getattr(node_info, "kernel_version", None),
            "os_image": getattr(node_info, "os_image", None),
            "container_runtime_version": getattr(node_info, "container_runtime_version", None),
            "kubelet_version": getattr(node_info, "kubelet_version", None),
        },
        in_cluster=True,
    )
    return EnrichedNode(**merged)


def mark_disappeared(persisted: WorkerNode) -> EnrichedNode:
    """
    View of a stored node that is missing from the live cluster. Nothing is
    scheduled on it any more, so its allocation and pod count drop to zero.
    """
    merged = persisted.model_dump()
    merged.update(
        status=NodeStatus.INACTIVE,
        is_ready=False,
        is_schedulable=False,
        in_cluster=False,
        allocated_cpu=0.0,
        allocated_memory=0.0,
        allocated_storage=0.0,
        current_pods=0,
        **compute_utilization(None, {}),
    )
    return EnrichedNode(**merged)


class NodeEnricher:
    """Fetches the pods of a node and merges everything into an EnrichedNode."""

    def __init__(self, reader):
        self.reader = reader

    async def enrich(self, persisted: WorkerNode, live, usage: Optional[NodeUsage] = None) -> EnrichedNode:
        pods = await self.reader.list_pods_on_node(persisted.name)
        enriched = merge_node(persisted, live, pods, usage)
        logger.debug(
            "Enriched node '%s': pods=%d cpu=%.3f mem=%.3fGB ready=%s schedulable=%s metrics=%s",
            enriched.name,
            enriched.current_pods,
            enriched.allocated_cpu,
            enriched.allocated_memory,
            enriched.is_ready,
            enriched.is_schedulable,
            enriched.metrics_available,
        )
        return enriched
