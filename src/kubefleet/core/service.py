# src/kubefleet/core/service.py
"""
The public operation surface of KubeFleet.

Every read operation runs a fresh reconciliation first, so responses
reflect the live cluster rather than whatever the store last recorded.
Filtering, sorting and pagination then happen in memory.
"""

import logging
from typing import List, Optional

from kubefleet.core.config import config
from kubefleet.core.enrichment import NodeEnricher
from kubefleet.core.lifecycle import LifecycleOperator
from kubefleet.core.query import query_nodes
from kubefleet.core.reconciler import Reconciler
from kubefleet.core.statistics import cluster_stats, partition_online
from kubefleet.models.drain import DrainOptions, DrainResult
from kubefleet.models.node import EnrichedNode
from kubefleet.models.query import NodeFilters, NodePage, Pagination, SortOptions
from kubefleet.models.stats import ClusterStats, SyncResult

logger = logging.getLogger(__name__)


class FleetService:
    """Coordinates the cluster reader, the node store and the lifecycle operator."""

    def __init__(self, reader, store):
        self.reader = reader
        self.store = store
        self.reconciler = Reconciler(reader, store, NodeEnricher(reader))
        self.lifecycle = LifecycleOperator(reader, store, self.reconciler)

    async def list_worker_nodes(
        self,
        filters: Optional[NodeFilters] = None,
        pagination: Optional[Pagination] = None,
        sort: Optional[SortOptions] = None,
    ) -> NodePage:
        nodes = await self.reconciler.reconcile()
        return query_nodes(nodes, filters, pagination, sort)

    async def get_worker_node(self, identifier: str) -> EnrichedNode:
        return await self.reconciler.get_node(identifier)

    async def sync_cluster_state(self) -> SyncResult:
        return await self.reconciler.sync()

    async def get_cluster_stats(self) -> ClusterStats:
        return cluster_stats(await self.reconciler.reconcile())

    async def list_online(self) -> List[EnrichedNode]:
        online, _ = partition_online(await self.reconciler.reconcile())
        return online

    async def list_offline(self) -> List[EnrichedNode]:
        _, offline = partition_online(await self.reconciler.reconcile())
        return offline

    async def cordon(self, identifier: str) -> EnrichedNode:
        return await self.lifecycle.cordon(identifier)

    async def uncordon(self, identifier: str) -> EnrichedNode:
        return await self.lifecycle.uncordon(identifier)

    async def drain(self, identifier: str, options: Optional[DrainOptions] = None) -> DrainResult:
        if options is None:
            options = DrainOptions(grace_period_seconds=config.DRAIN_GRACE_PERIOD_SECONDS)
        return await self.lifecycle.drain(identifier, options)

    async def delete_worker_node(self, identifier: str) -> bool:
        """
        Removes the persisted record. The live node is left untouched and
        will be provisioned again by the next reconciliation if it is still present.

        Returns:
            True if a record was deleted, False if the identifier is unknown to the store.
        """
        record = await self.reconciler.resolve(identifier)
        if record is None:
            return False
        deleted = await self.store.delete(record.name)
        if deleted:
            logger.info(f"Deleted worker node record '{record.name}'.")
        return deleted

    async def close(self):
        await self.reader.close()
