# src/kubefleet/storage/sqlite_node_repository.py

"""
SQLite implementation of the worker-node store.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

import aiosqlite

from kubefleet.core.exceptions import QueryError
from kubefleet.models.node import WorkerNode
from kubefleet.storage.base_repository import NodeStore
from kubefleet.storage.columns import COLUMNS, UPSERT_COLUMNS, prepare_new, row_to_node, to_db_value
from kubefleet.utils.date_utils import utc_now

logger = logging.getLogger(__name__)

_SELECT = f"SELECT {', '.join(COLUMNS)} FROM worker_nodes"


class SQLiteNodeStore(NodeStore):
    """
    SQLite implementation of NodeStore.
    """

    def __init__(self, db_manager):
        self.db_manager = db_manager

    async def _fetch_one(self, conn, where: str, value: Any) -> Optional[WorkerNode]:
        conn.row_factory = aiosqlite.Row
        async with conn.execute(f"{_SELECT} WHERE {where} = ?", (value,)) as cursor:
            row = await cursor.fetchone()
        return row_to_node(row) if row else None

    async def get_by_name(self, name: str) -> Optional[WorkerNode]:
        try:
            async with self.db_manager.connection_scope() as conn:
                return await self._fetch_one(conn, "name", name)
        except sqlite3.Error as e:
            logger.error(f"Could not read worker node '{name}': {e}")
            raise QueryError(f"Could not read worker node '{name}': {e}") from e

    async def get_by_id(self, node_id: str) -> Optional[WorkerNode]:
        try:
            async with self.db_manager.connection_scope() as conn:
                return await self._fetch_one(conn, "id", node_id)
        except sqlite3.Error as e:
            logger.error(f"Could not read worker node with id '{node_id}': {e}")
            raise QueryError(f"Could not read worker node with id '{node_id}': {e}") from e

    async def list_all(self) -> List[WorkerNode]:
        try:
            async with self.db_manager.connection_scope() as conn:
                conn.row_factory = aiosqlite.Row
                async with conn.execute(f"{_SELECT} ORDER BY name ASC") as cursor:
                    rows = await cursor.fetchall()
                return [row_to_node(row) for row in rows]
        except sqlite3.Error as e:
            logger.error(f"Could not list worker nodes: {e}")
            raise QueryError(f"Could not list worker nodes: {e}") from e

    async def create(self, node: WorkerNode) -> WorkerNode:
        node = prepare_new(node)
        values = node.model_dump()
        placeholders = ", ".join("?" for _ in COLUMNS)
        try:
            async with self.db_manager.connection_scope() as conn:
                await conn.execute(
                    f"INSERT INTO worker_nodes ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                    tuple(to_db_value(c, values[c]) for c in COLUMNS),
                )
                await conn.commit()
                logger.info(f"Created worker node record: {node.name}")
                return await self._fetch_one(conn, "name", node.name)
        except sqlite3.Error as e:
            logger.error(f"Could not create worker node '{node.name}': {e}")
            raise QueryError(f"Could not create worker node '{node.name}': {e}") from e

    async def update(self, name: str, fields: Dict[str, Any]) -> Optional[WorkerNode]:
        fields = {k: v for k, v in fields.items() if k in COLUMNS and k not in ("id", "name", "created_at")}
        fields.setdefault("updated_at", utc_now())
        assignments = ", ".join(f"{column} = ?" for column in fields)
        try:
            async with self.db_manager.connection_scope() as conn:
                cursor = await conn.execute(
                    f"UPDATE worker_nodes SET {assignments} WHERE name = ?",
                    tuple(to_db_value(c, v) for c, v in fields.items()) + (name,),
                )
                await conn.commit()
                if cursor.rowcount == 0:
                    return None
                return await self._fetch_one(conn, "name", name)
        except sqlite3.Error as e:
            logger.error(f"Could not update worker node '{name}': {e}")
            raise QueryError(f"Could not update worker node '{name}': {e}") from e

    async def upsert(self, node: WorkerNode) -> WorkerNode:
        node = prepare_new(node)
        values = node.model_dump()
        placeholders = ", ".join("?" for _ in COLUMNS)
        refresh = ", ".join(f"{c} = excluded.{c}" for c in UPSERT_COLUMNS)
        try:
            async with self.db_manager.connection_scope() as conn:
                await conn.execute(
                    f"""
                    INSERT INTO worker_nodes ({', '.join(COLUMNS)}) VALUES ({placeholders})
                    ON CONFLICT(name) DO UPDATE SET {refresh};
                    """,
                    tuple(to_db_value(c, values[c]) for c in COLUMNS),
                )
                await conn.commit()
                return await self._fetch_one(conn, "name", node.name)
        except sqlite3.Error as e:
            logger.error(f"Could not upsert worker node '{node.name}': {e}")
            raise QueryError(f"Could not upsert worker node '{node.name}': {e}") from e

    async def delete(self, name: str) -> bool:
        try:
            async with self.db_manager.connection_scope() as conn:
                cursor = await conn.execute("DELETE FROM worker_nodes WHERE name = ?", (name,))
                await conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            logger.error(f"Could not delete worker node '{name}': {e}")
            raise QueryError(f"Could not delete worker node '{name}': {e}") from e
