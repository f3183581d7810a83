# src/kubefleet/models/stats.py
"""
Pydantic models for fleet-wide statistics and synchronization reports.
"""

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from .node import EnrichedNode


class ClusterSummary(BaseModel):
    total_nodes: int = Field(0, description="Number of nodes known to the fleet")
    ready_nodes: int = Field(0, description="Nodes whose Ready condition is True")
    schedulable_nodes: int = Field(0, description="Nodes accepting new pods")
    last_sync: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Time of the reconciliation these numbers come from",
    )


class StatusHistogram(BaseModel):
    active: int = 0
    inactive: int = 0
    maintenance: int = 0
    pending: int = 0
    not_ready: int = 0


class ResourceUsage(BaseModel):
    total: float = Field(0.0, description="Total capacity (cores or GB)")
    allocated: float = Field(0.0, description="Requested amount (cores or GB)")
    utilization: float = Field(0.0, description="allocated / total as a percentage, 0 when total is 0")


class PodUsage(BaseModel):
    max_total: int = Field(0, description="Summed pod capacity")
    current_total: int = Field(0, description="Summed scheduled pods")
    utilization: float = Field(0.0, description="current / max as a percentage, 0 when max is 0")


class ResourceTotals(BaseModel):
    cpu: ResourceUsage = Field(default_factory=ResourceUsage)
    memory: ResourceUsage = Field(default_factory=ResourceUsage)
    pods: PodUsage = Field(default_factory=PodUsage)


class ClusterStats(BaseModel):
    """Fleet-wide counts and utilization ratios."""

    cluster: ClusterSummary = Field(default_factory=ClusterSummary)
    node_status: StatusHistogram = Field(default_factory=StatusHistogram)
    resources: ResourceTotals = Field(default_factory=ResourceTotals)


class SyncStats(BaseModel):
    total_live_nodes: int = Field(0, description="Nodes returned by the live listing")
    synced_nodes: int = Field(0, description="Nodes reconciled into the store")
    skipped_nodes: int = Field(0, description="Live nodes skipped because of a store failure")
    disappeared_nodes: int = Field(0, description="Stored nodes missing from the live listing")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SyncResult(BaseModel):
    success: bool = True
    stats: SyncStats = Field(default_factory=SyncStats)
    nodes: List[EnrichedNode] = Field(default_factory=list)
