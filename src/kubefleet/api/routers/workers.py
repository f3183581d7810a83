# src/kubefleet/api/routers/workers.py
"""
API routes for worker nodes: listing, single-node reads, statistics,
synchronization and lifecycle operations.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from kubefleet.api.dependencies import get_fleet_service
from kubefleet.api.schemas import DeleteResponse, DrainRequest, NodeListResponse
from kubefleet.core.config import config
from kubefleet.core.service import FleetService
from kubefleet.models.drain import DrainOptions, DrainResult
from kubefleet.models.node import EnrichedNode, NodeStatus
from kubefleet.models.query import NodeFilters, NodePage, Pagination, SortOptions
from kubefleet.models.stats import ClusterStats, SyncResult

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/workers", response_model=NodePage)
async def list_workers(
    status: Optional[NodeStatus] = Query(None, description="Exact match on lifecycle status."),
    is_ready: Optional[bool] = Query(None, description="Exact match on readiness."),
    is_schedulable: Optional[bool] = Query(None, description="Exact match on schedulability."),
    search: Optional[str] = Query(None, description="Substring of name, hostname, IP, architecture or OS."),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=500),
    sort_by: str = Query("name", description="Node field to sort by."),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    service: FleetService = Depends(get_fleet_service),
):
    """Reconcile with the cluster and return one page of worker nodes."""
    filters = NodeFilters(status=status, is_ready=is_ready, is_schedulable=is_schedulable, search=search)
    try:
        return await service.list_worker_nodes(
            filters, Pagination(page=page, limit=limit), SortOptions(sort_by=sort_by, sort_order=sort_order)
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.get("/workers/stats", response_model=ClusterStats)
async def worker_stats(service: FleetService = Depends(get_fleet_service)):
    """Fleet-wide counts and utilization."""
    return await service.get_cluster_stats()


@router.get("/workers/online", response_model=NodeListResponse)
async def online_workers(service: FleetService = Depends(get_fleet_service)):
    """Nodes that are ready, schedulable and ACTIVE."""
    nodes = await service.list_online()
    return NodeListResponse(count=len(nodes), data=nodes)


@router.get("/workers/offline", response_model=NodeListResponse)
async def offline_workers(service: FleetService = Depends(get_fleet_service)):
    nodes = await service.list_offline()
    return NodeListResponse(count=len(nodes), data=nodes)


@router.post("/workers/sync", response_model=SyncResult)
async def sync_workers(service: FleetService = Depends(get_fleet_service)):
    """Run one reconciliation pass and report what it did."""
    return await service.sync_cluster_state()


@router.get("/workers/{identifier}", response_model=EnrichedNode)
async def get_worker(identifier: str, service: FleetService = Depends(get_fleet_service)):
    """Return one worker node by store id or node name."""
    return await service.get_worker_node(identifier)


@router.post("/workers/{identifier}/cordon", response_model=EnrichedNode)
async def cordon_worker(identifier: str, service: FleetService = Depends(get_fleet_service)):
    return await service.cordon(identifier)


@router.post("/workers/{identifier}/uncordon", response_model=EnrichedNode)
async def uncordon_worker(identifier: str, service: FleetService = Depends(get_fleet_service)):
    return await service.uncordon(identifier)


@router.post("/workers/{identifier}/drain", response_model=DrainResult)
async def drain_worker(
    identifier: str,
    request: Optional[DrainRequest] = Body(None),
    service: FleetService = Depends(get_fleet_service),
):
    """
    Cordon the node and evict every pod on it. Individual eviction failures
    are reported in the result, never as an error response.
    """
    request = request or DrainRequest()
    grace = request.grace_period_seconds
    options = DrainOptions(
        grace_period_seconds=config.DRAIN_GRACE_PERIOD_SECONDS if grace is None else grace,
        delete_local_data=request.delete_local_data,
    )
    return await service.drain(identifier, options)


@router.delete("/workers/{identifier}", response_model=DeleteResponse)
async def delete_worker(identifier: str, service: FleetService = Depends(get_fleet_service)):
    """Remove the persisted record of a node."""
    deleted = await service.delete_worker_node(identifier)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Worker node not found: {identifier}")
    return DeleteResponse(deleted=True, identifier=identifier)
