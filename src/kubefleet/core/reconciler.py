# src/kubefleet/core/reconciler.py
"""
Reconciliation of the persisted fleet inventory with the live cluster.

One pass lists every live node, upserts its observed facts into the store,
enriches it with its pods and metrics, writes the derived fields back and
returns the enriched set. Stored nodes missing from the live listing are
reported as INACTIVE, unready and unschedulable, and their records are
updated to match; they are never deleted here.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from kubefleet.core.config import config
from kubefleet.core.enrichment import NodeEnricher, mark_disappeared, parse_live_node
from kubefleet.core.exceptions import (
    DatabaseError,
    MetricsUnavailable,
    NodeNotFound,
    StoreInconsistency,
)
from kubefleet.models.node import EnrichedNode, NodeStatus, NodeUsage, WorkerNode
from kubefleet.models.stats import SyncResult, SyncStats
from kubefleet.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class Reconciler:
    def __init__(self, reader, store, enricher: Optional[NodeEnricher] = None, concurrency: Optional[int] = None):
        self.reader = reader
        self.store = store
        self.enricher = enricher or NodeEnricher(reader)
        self.concurrency = concurrency or config.SYNC_CONCURRENCY

    async def _usage_snapshot(self) -> Dict[str, NodeUsage]:
        """Cluster-wide metrics, or an empty mapping when no metrics backend answers."""
        try:
            return await self.reader.list_node_metrics()
        except MetricsUnavailable as e:
            logger.info(f"Node metrics unavailable, utilization will be omitted: {e.reason}")
            return {}

    async def _node_usage(self, name: str) -> Optional[NodeUsage]:
        try:
            return await self.reader.get_node_metrics(name)
        except MetricsUnavailable as e:
            logger.info(f"Metrics unavailable for node '{name}': {e.reason}")
            return None

    async def _write_back(self, enriched: EnrichedNode) -> None:
        try:
            await self.store.update(enriched.name, enriched.persisted_fields())
        except DatabaseError as e:
            raise StoreInconsistency(enriched.name, str(e)) from e

    async def _sync_one(self, live, usage: Optional[NodeUsage]) -> EnrichedNode:
        facts = parse_live_node(live)
        now = utc_now()
        # last_health_check only lands on insert; upsert never refreshes it.
        observed = WorkerNode(**facts, status=NodeStatus.ACTIVE, last_heartbeat=now, last_health_check=now)
        try:
            record = await self.store.upsert(observed)
        except DatabaseError as e:
            raise StoreInconsistency(observed.name, str(e)) from e

        enriched = await self.enricher.enrich(record, live, usage)
        await self._write_back(enriched)
        return enriched

    async def _sync_bounded(self, semaphore: asyncio.Semaphore, live, usage: Optional[NodeUsage]) -> EnrichedNode:
        async with semaphore:
            return await self._sync_one(live, usage)

    async def _disappear(self, record: WorkerNode) -> EnrichedNode:
        """Reports a stored node that is no longer live and records that state."""
        view = mark_disappeared(record)
        changed = any(getattr(record, field) != value for field, value in view.persisted_fields().items())
        if changed:
            logger.warning(f"Node '{record.name}' is no longer present in the cluster; marking it INACTIVE.")
            try:
                await self._write_back(view)
            except StoreInconsistency as e:
                logger.error(f"Could not record disappearance of node '{record.name}': {e.reason}")
        return view

    async def sync(self) -> SyncResult:
        """
        Runs one reconciliation pass.

        Raises:
            ClusterUnavailable: when the live cluster cannot be listed. Nothing is written.
        """
        live_nodes = await self.reader.list_nodes()
        usage = await self._usage_snapshot()
        semaphore = asyncio.Semaphore(self.concurrency)

        results = await asyncio.gather(
            *(self._sync_bounded(semaphore, live, usage.get(live.metadata.name)) for live in live_nodes),
            return_exceptions=True,
        )

        nodes: List[EnrichedNode] = []
        skipped = 0
        for live, result in zip(live_nodes, results):
            if isinstance(result, StoreInconsistency):
                logger.error(f"Skipping node '{live.metadata.name}': {result.reason}")
                skipped += 1
                continue
            if isinstance(result, BaseException):
                raise result
            nodes.append(result)

        live_names = {live.metadata.name for live in live_nodes}
        disappeared = [
            await self._disappear(record) for record in await self.store.list_all() if record.name not in live_names
        ]
        nodes.extend(disappeared)

        stats = SyncStats(
            total_live_nodes=len(live_nodes),
            synced_nodes=len(live_nodes) - skipped,
            skipped_nodes=skipped,
            disappeared_nodes=len(disappeared),
        )
        logger.info(
            f"Reconciled {stats.synced_nodes}/{stats.total_live_nodes} live nodes "
            f"({stats.skipped_nodes} skipped, {stats.disappeared_nodes} no longer in the cluster)."
        )
        return SyncResult(success=skipped == 0, stats=stats, nodes=nodes)

    async def reconcile(self) -> List[EnrichedNode]:
        """The enriched fleet after one reconciliation pass."""
        return (await self.sync()).nodes

    async def resolve(self, identifier: str) -> Optional[WorkerNode]:
        """Finds a stored record by opaque id first, then by name."""
        record = await self.store.get_by_id(identifier)
        if record is None:
            record = await self.store.get_by_name(identifier)
        return record

    async def get_node(self, identifier: str) -> EnrichedNode:
        """
        Reconciles and enriches a single node, addressed by store id or name.

        The live node is read directly by name rather than through a full
        cluster listing. A live node without a record is auto-provisioned.

        Raises:
            NodeNotFound: when neither the store nor the cluster knows the identifier.
            ClusterUnavailable: when the control plane cannot be read.
            StoreInconsistency: when the record cannot be written.
        """
        record = await self.resolve(identifier)
        name = record.name if record else identifier

        live = await self.reader.get_node(name)
        if live is None:
            if record is None:
                raise NodeNotFound(identifier)
            return await self._disappear(record)

        return await self._sync_one(live, await self._node_usage(name))

