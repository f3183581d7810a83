# src/kubefleet/core/factory.py
"""
Factory functions to instantiate the node store and the fleet service
for the configured database.
"""

import logging
from functools import lru_cache

from ..collectors.cluster_reader import ClusterStateReader
from ..core.config import config
from ..core.service import FleetService
from ..storage.base_repository import NodeStore
from ..storage.postgres_node_repository import PostgresNodeStore
from ..storage.sqlite_node_repository import SQLiteNodeStore

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_node_store() -> NodeStore:
    """
    Returns the node store for DB_TYPE. Uses lru_cache to act as a singleton.
    """
    from ..core.db import db_manager

    if config.DB_TYPE == "sqlite":
        logger.info("Using SQLite node store.")
        return SQLiteNodeStore(db_manager)
    elif config.DB_TYPE == "postgres":
        logger.info("Using PostgreSQL node store.")
        return PostgresNodeStore(db_manager)
    else:
        raise NotImplementedError(f"Node store for DB_TYPE '{config.DB_TYPE}' not implemented.")


@lru_cache(maxsize=1)
def get_fleet_service() -> FleetService:
    """
    Returns the FleetService wired to the live cluster and the configured store.
    """
    return FleetService(ClusterStateReader(), get_node_store())


def clear_caches():
    """Drops the cached singletons so the next call rebuilds them."""
    get_node_store.cache_clear()
    get_fleet_service.cache_clear()
