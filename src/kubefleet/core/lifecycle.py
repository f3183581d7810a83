# src/kubefleet/core/lifecycle.py
"""
Cordon, uncordon and drain.

Each operation resolves the node through the reconciler, patches the live
cluster first and then records the outcome in the node store. Drain evicts
pods concurrently with a bounded number of in-flight requests; a failed
eviction is recorded against its pod and never aborts the others.
"""

import asyncio
import logging
from typing import Optional

from kubefleet.core.config import config
from kubefleet.core.enrichment import derive_status
from kubefleet.core.exceptions import DatabaseError, EvictionFailed, StoreInconsistency
from kubefleet.models.drain import DrainOptions, DrainResult, EvictionResult, EvictionStatus
from kubefleet.models.node import EnrichedNode, NodeStatus

logger = logging.getLogger(__name__)


def uses_local_data(pod) -> bool:
    """True when the pod mounts at least one emptyDir volume."""
    volumes = getattr(getattr(pod, "spec", None), "volumes", None) or []
    return any(getattr(volume, "empty_dir", None) is not None for volume in volumes)


class LifecycleOperator:
    def __init__(self, reader, store, reconciler, concurrency: Optional[int] = None):
        self.reader = reader
        self.store = store
        self.reconciler = reconciler
        self.concurrency = concurrency or config.DRAIN_CONCURRENCY

    async def _persist(self, node: EnrichedNode, **fields) -> EnrichedNode:
        try:
            await self.store.update(node.name, fields)
        except DatabaseError as e:
            raise StoreInconsistency(node.name, str(e)) from e
        return node.model_copy(update=fields)

    async def cordon(self, identifier: str) -> EnrichedNode:
        """Marks the node unschedulable. Cordoning a cordoned node is a no-op apart from the patch."""
        node = await self.reconciler.get_node(identifier)
        await self.reader.set_schedulable(node.name, False)
        logger.info(f"Cordoned node '{node.name}'.")
        return await self._persist(node, is_schedulable=False)

    async def uncordon(self, identifier: str) -> EnrichedNode:
        """
        Marks the node schedulable again. A node in MAINTENANCE leaves it,
        since uncordoning is the exit from the drained state.
        """
        node = await self.reconciler.get_node(identifier)
        await self.reader.set_schedulable(node.name, True)
        fields = {"is_schedulable": True}
        if node.status == NodeStatus.MAINTENANCE:
            fields["status"] = derive_status(NodeStatus.ACTIVE, node.is_ready)
        logger.info(f"Uncordoned node '{node.name}'.")
        return await self._persist(node, **fields)

    async def _evict(self, semaphore: asyncio.Semaphore, pod, options: DrainOptions) -> EvictionResult:
        name = pod.metadata.name
        namespace = pod.metadata.namespace
        if not options.delete_local_data and uses_local_data(pod):
            logger.warning(f"Evicting pod {namespace}/{name}, which uses emptyDir storage; its local data is lost.")

        async with semaphore:
            try:
                await self.reader.evict_pod(name, namespace, options.grace_period_seconds)
            except EvictionFailed as e:
                logger.warning(f"Eviction of pod {namespace}/{name} failed: {e.reason}")
                return EvictionResult(name=name, namespace=namespace, status=EvictionStatus.FAILED, error=e.reason)
        return EvictionResult(name=name, namespace=namespace, status=EvictionStatus.EVICTED)

    async def drain(self, identifier: str, options: Optional[DrainOptions] = None) -> DrainResult:
        """
        Cordons the node, submits an eviction for every pod on it and marks it
        MAINTENANCE. Returns once every eviction has been accepted or refused;
        it does not wait for the pods to terminate.
        """
        options = options or DrainOptions(grace_period_seconds=config.DRAIN_GRACE_PERIOD_SECONDS)
        node = await self.cordon(identifier)

        pods = await self.reader.list_pods_on_node(node.name)
        logger.info(f"Draining node '{node.name}': {len(pods)} pods to evict.")

        semaphore = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(*(self._evict(semaphore, pod, options) for pod in pods))

        await self._persist(node, status=NodeStatus.MAINTENANCE, current_pods=0)

        evicted = sum(1 for r in results if r.status == EvictionStatus.EVICTED)
        result = DrainResult(
            node=node.name,
            pods_evicted=evicted,
            pods_failed=len(results) - evicted,
            eviction_results=list(results),
        )
        logger.info(f"Drained node '{node.name}': {result.pods_evicted} evicted, {result.pods_failed} failed.")
        return result
