# src/kubefleet/core/k8s_client.py
"""
Process-wide Kubernetes configuration for the API clients.

The configuration is resolved once: the in-cluster service account when
running inside a pod, otherwise the local kubeconfig. Concurrent first
callers wait on the same lock instead of loading twice.
"""

import asyncio
import logging
from typing import Optional

from kubernetes_asyncio import client, config

logger = logging.getLogger(__name__)

_lock = asyncio.Lock()
_source: Optional[str] = None


async def _load_incluster() -> None:
    config.load_incluster_config()


async def _load_kubeconfig() -> None:
    await config.load_kube_config()


_LOADERS = (("in-cluster service account", _load_incluster), ("kubeconfig", _load_kubeconfig))


async def load_cluster_config() -> Optional[str]:
    """
    Loads the Kubernetes client configuration if it is not loaded yet.

    Returns:
        The name of the source the configuration came from, or None when
        no source could be loaded.
    """
    global _source

    if _source:
        return _source

    async with _lock:
        if _source:
            return _source
        for source, loader in _LOADERS:
            try:
                await loader()
            except config.ConfigException as e:
                logger.debug(f"No {source} configuration: {e}")
                continue
            except Exception as e:
                logger.warning(f"Could not load {source} configuration: {e}")
                continue
            _source = source
            logger.info(f"Using Kubernetes configuration from the {source}.")
            return _source

    logger.warning("No Kubernetes configuration found; the cluster cannot be reached.")
    return None


async def get_core_v1_api() -> Optional[client.CoreV1Api]:
    """CoreV1Api for nodes, pods and evictions, or None without configuration."""
    if await load_cluster_config():
        return client.CoreV1Api()
    return None


async def get_custom_objects_api() -> Optional[client.CustomObjectsApi]:
    """CustomObjectsApi for the metrics.k8s.io group, or None without configuration."""
    if await load_cluster_config():
        return client.CustomObjectsApi()
    return None
