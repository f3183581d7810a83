# src/kubefleet/collectors/cluster_reader.py
"""
Thin async wrapper around the Kubernetes control plane.

Every call goes to the API server; nothing is cached. Failures that mean the
control plane cannot be used at all surface as ``ClusterUnavailable``;
per-node and per-pod conditions surface as their own, narrower exceptions.
"""

import logging
from typing import Any, Dict, List, Optional

from kubernetes_asyncio import client
from kubernetes_asyncio.client.rest import ApiException

from kubefleet.core.config import config as global_config
from kubefleet.core.exceptions import (
    ClusterUnavailable,
    EvictionFailed,
    MetricsUnavailable,
    NodeNotFound,
)
from kubefleet.core.k8s_client import get_core_v1_api, get_custom_objects_api
from kubefleet.models.node import NodeUsage
from kubefleet.utils.date_utils import parse_iso_date
from kubefleet.utils.k8s_utils import normalize_memory, normalize_quantity

logger = logging.getLogger(__name__)


class ClusterStateReader:
    """Reads and patches live nodes, lists pods, evicts pods and reads node metrics."""

    def __init__(self, core_api: Optional[client.CoreV1Api] = None, metrics_api: Optional[client.CustomObjectsApi] = None):
        self._api = core_api
        self._metrics_api = metrics_api

    async def _ensure_client(self) -> client.CoreV1Api:
        """
        Lazily initialize the Kubernetes Async client using the centralized thread-safe loader.
        """
        if self._api:
            return self._api

        self._api = await get_core_v1_api()
        if not self._api:
            raise ClusterUnavailable("Kubernetes client is not configured.")
        return self._api

    async def _ensure_metrics_client(self) -> Optional[client.CustomObjectsApi]:
        if self._metrics_api:
            return self._metrics_api
        self._metrics_api = await get_custom_objects_api()
        return self._metrics_api

    async def list_nodes(self) -> List[client.V1Node]:
        api = await self._ensure_client()
        try:
            nodes = await api.list_node(watch=False)
        except ApiException as e:
            logger.error("Kubernetes API error while listing nodes: %s", e)
            raise ClusterUnavailable(f"Could not list nodes: {e.status} {e.reason}") from e
        except Exception as e:
            logger.error("Unexpected error while listing nodes: %s", e)
            raise ClusterUnavailable(f"Could not list nodes: {e}") from e

        items = nodes.items or []
        logger.debug("Listed %d live nodes.", len(items))
        return items

    async def get_node(self, name: str) -> Optional[client.V1Node]:
        """Reads one live node. A 404 is reported as None, not as an error."""
        api = await self._ensure_client()
        try:
            return await api.read_node(name)
        except ApiException as e:
            if e.status == 404:
                logger.debug("Node '%s' not found in the cluster.", name)
                return None
            logger.error("Kubernetes API error while reading node '%s': %s", name, e)
            raise ClusterUnavailable(f"Could not read node '{name}': {e.status} {e.reason}") from e
        except Exception as e:
            logger.error("Unexpected error while reading node '%s': %s", name, e)
            raise ClusterUnavailable(f"Could not read node '{name}': {e}") from e

    async def list_pods_on_node(self, name: str) -> List[client.V1Pod]:
        """Lists pods in all namespaces whose spec.nodeName equals ``name``."""
        api = await self._ensure_client()
        try:
            pods = await api.list_pod_for_all_namespaces(field_selector=f"spec.nodeName={name}", watch=False)
        except ApiException as e:
            logger.error("Kubernetes API error while listing pods on node '%s': %s", name, e)
            raise ClusterUnavailable(f"Could not list pods on node '{name}': {e.status} {e.reason}") from e
        except Exception as e:
            logger.error("Unexpected error while listing pods on node '%s': %s", name, e)
            raise ClusterUnavailable(f"Could not list pods on node '{name}': {e}") from e
        return pods.items or []

    async def set_schedulable(self, name: str, schedulable: bool) -> client.V1Node:
        """Patches ``spec.unschedulable`` to the negation of ``schedulable``."""
        api = await self._ensure_client()
        body = {"spec": {"unschedulable": not schedulable}}
        try:
            node = await api.patch_node(name, body)
        except ApiException as e:
            if e.status == 404:
                raise NodeNotFound(name) from e
            logger.error("Kubernetes API error while patching node '%s': %s", name, e)
            raise ClusterUnavailable(f"Could not patch node '{name}': {e.status} {e.reason}") from e
        except Exception as e:
            logger.error("Unexpected error while patching node '%s': %s", name, e)
            raise ClusterUnavailable(f"Could not patch node '{name}': {e}") from e

        logger.info("Node '%s' marked %s.", name, "schedulable" if schedulable else "unschedulable")
        return node

    async def evict_pod(self, name: str, namespace: str, grace_period_seconds: int) -> None:
        """
        Submits a policy/v1 eviction for one pod.

        Raises:
            EvictionFailed: for any rejection, including disruption-budget refusals (429).
        """
        api = await self._ensure_client()
        eviction = client.V1Eviction(
            api_version="policy/v1",
            kind="Eviction",
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            delete_options=client.V1DeleteOptions(grace_period_seconds=grace_period_seconds),
        )
        try:
            await api.create_namespaced_pod_eviction(name, namespace, eviction)
        except ApiException as e:
            raise EvictionFailed(name, namespace, f"{e.status} {e.reason}") from e
        except Exception as e:
            raise EvictionFailed(name, namespace, str(e)) from e
        logger.debug("Eviction accepted for pod %s/%s.", namespace, name)

    async def list_node_metrics(self) -> Dict[str, NodeUsage]:
        """
        Reads the cluster-wide NodeMetrics list, keyed by node name.

        Raises:
            MetricsUnavailable: when metrics are disabled or the metrics API cannot be read.
        """
        api = await self._metrics_client_or_raise()
        try:
            response = await api.list_cluster_custom_object(
                global_config.METRICS_API_GROUP, global_config.METRICS_API_VERSION, "nodes"
            )
        except Exception as e:
            raise MetricsUnavailable(reason=str(e)) from e

        usages = {}
        for item in (response or {}).get("items", []):
            name = (item.get("metadata") or {}).get("name")
            if name:
                usages[name] = self._parse_usage(item)
        return usages

    async def get_node_metrics(self, name: str) -> NodeUsage:
        """Reads the NodeMetrics object of one node."""
        api = await self._metrics_client_or_raise(name)
        try:
            item = await api.get_cluster_custom_object(
                global_config.METRICS_API_GROUP, global_config.METRICS_API_VERSION, "nodes", name
            )
        except Exception as e:
            raise MetricsUnavailable(node=name, reason=str(e)) from e
        return self._parse_usage(item)

    async def _metrics_client_or_raise(self, node: str = None) -> client.CustomObjectsApi:
        if not global_config.METRICS_ENABLED:
            raise MetricsUnavailable(node=node, reason="metrics collection is disabled")
        api = await self._ensure_metrics_client()
        if not api:
            raise MetricsUnavailable(node=node, reason="Kubernetes client is not configured")
        return api

    @staticmethod
    def _parse_usage(item: Dict[str, Any]) -> NodeUsage:
        usage = item.get("usage") or {}
        return NodeUsage(
            cpu_cores=normalize_quantity(usage.get("cpu")),
            memory_gb=normalize_memory(usage.get("memory")),
            timestamp=parse_iso_date(item.get("timestamp")),
            window=item.get("window"),
        )

    async def close(self):
        """Close the Kubernetes API clients if they exist."""
        if self._api:
            await self._api.api_client.close()
            self._api = None
        if self._metrics_api:
            await self._metrics_api.api_client.close()
            self._metrics_api = None
        logger.debug("ClusterStateReader Kubernetes clients closed.")
