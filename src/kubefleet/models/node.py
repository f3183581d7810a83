# src/kubefleet/models/node.py
"""
Pydantic models for worker nodes: the persisted inventory record, the
request-scoped enriched view, and the metrics snapshot used to compute
utilization.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NodeStatus(str, Enum):
    """Lifecycle status of a worker node record."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"
    PENDING = "PENDING"
    NOT_READY = "NOT_READY"


class WorkerNode(BaseModel):
    """
    Persisted fleet-inventory record for one cluster node.

    ``name`` is the join key with the live cluster object; ``id`` is an
    opaque identifier assigned by the store.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, description="Store-assigned identifier")
    name: str = Field(..., description="Unique cluster node name")

    hostname: str = Field("", description="Hostname address, falls back to the node name")
    ip_address: str = Field("", description="InternalIP address")

    cpu_cores: int = Field(0, description="CPU capacity in whole cores")
    cpu_architecture: str = Field("amd64", description="CPU architecture")
    total_memory: str = Field("0", description="Memory capacity as a quantity string")
    total_storage: str = Field("0", description="Ephemeral storage capacity as a quantity string")
    operating_system: str = Field("linux", description="Operating system")
    kernel_version: Optional[str] = Field(None, description="Kernel version")
    os_image: Optional[str] = Field(None, description="OS image")
    container_runtime: Optional[str] = Field(None, description="Container runtime version")
    kubelet_version: Optional[str] = Field(None, description="Kubelet version")

    max_pods: int = Field(110, description="Pod capacity")

    allocated_cpu: float = Field(0.0, description="Requested CPU in cores")
    allocated_memory: float = Field(0.0, description="Requested memory in GB")
    allocated_storage: float = Field(0.0, description="Requested storage in GB")
    current_pods: int = Field(0, description="Pods scheduled on the node")

    status: NodeStatus = Field(NodeStatus.PENDING, description="Lifecycle status")
    is_ready: bool = Field(False, description="Ready condition of the node")
    is_schedulable: bool = Field(True, description="Whether new pods may be placed")

    labels: Dict[str, str] = Field(default_factory=dict, description="Node labels")
    taints: List[Dict[str, Any]] = Field(default_factory=list, description="Node taints")

    last_heartbeat: Optional[datetime] = Field(None, description="Last time the node was observed live")
    last_health_check: Optional[datetime] = Field(None, description="Last health evaluation")
    created_at: Optional[datetime] = Field(None, description="Record creation time")
    updated_at: Optional[datetime] = Field(None, description="Record update time")


# Fields refreshed from the live node on every observation.
OBSERVED_FIELDS = (
    "hostname",
    "ip_address",
    "cpu_cores",
    "cpu_architecture",
    "total_memory",
    "total_storage",
    "operating_system",
    "kernel_version",
    "os_image",
    "container_runtime",
    "kubelet_version",
    "max_pods",
    "labels",
    "taints",
    "is_ready",
    "is_schedulable",
)


class NodeUsage(BaseModel):
    """Instantaneous resource usage of one node as reported by the metrics API."""

    cpu_cores: float = Field(..., description="CPU usage in cores")
    memory_gb: float = Field(..., description="Memory usage in GB")
    timestamp: Optional[datetime] = Field(None, description="Sample timestamp")
    window: Optional[str] = Field(None, description="Sampling window, e.g. '20s'")


class EnrichedNode(WorkerNode):
    """
    A WorkerNode merged with live cluster facts and derived fields.

    Never persisted as a whole; ``persisted_fields()`` is the subset written
    back to the store.
    """

    conditions: Dict[str, str] = Field(default_factory=dict, description="Condition type -> status")
    capacity: Dict[str, str] = Field(default_factory=dict, description="Live capacity")
    allocatable: Dict[str, str] = Field(default_factory=dict, description="Live allocatable")
    addresses: List[Dict[str, str]] = Field(default_factory=list, description="Live node addresses")
    node_info: Dict[str, Optional[str]] = Field(default_factory=dict, description="Live node system info")

    cpu_usage_cores: Optional[float] = Field(None, description="CPU usage in cores")
    memory_usage_gb: Optional[float] = Field(None, description="Memory usage in GB")
    cpu_utilization: Optional[float] = Field(None, description="CPU usage as a percentage of capacity")
    memory_utilization: Optional[float] = Field(None, description="Memory usage as a percentage of capacity")
    metrics_available: bool = Field(False, description="Whether a metrics snapshot was available")

    in_cluster: bool = Field(True, description="Whether the node is present in the live cluster")

    def persisted_fields(self) -> Dict[str, Any]:
        """The WorkerNode-shaped subset of this view, keyed by column name."""
        return self.model_dump(include=set(WorkerNode.model_fields) - {"id", "name", "created_at"})

    @property
    def is_online(self) -> bool:
        return self.is_ready and self.is_schedulable and self.status == NodeStatus.ACTIVE
