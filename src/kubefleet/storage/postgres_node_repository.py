import logging
from typing import Any, Dict, List, Optional

from ..core.exceptions import QueryError
from ..models.node import WorkerNode
from ..storage.base_repository import NodeStore
from ..utils.date_utils import utc_now
from .columns import COLUMNS, UPSERT_COLUMNS, prepare_new, row_to_node, to_db_value

logger = logging.getLogger(__name__)

_SELECT = f"SELECT {', '.join(COLUMNS)} FROM worker_nodes"
_PLACEHOLDERS = ", ".join(f"${i}" for i in range(1, len(COLUMNS) + 1))


def _params(node: WorkerNode) -> list:
    values = node.model_dump()
    return [to_db_value(c, values[c], timestamps_as_text=False) for c in COLUMNS]


class PostgresNodeStore(NodeStore):
    def __init__(self, db_manager):
        self.db_manager = db_manager

    async def get_by_name(self, name: str) -> Optional[WorkerNode]:
        try:
            async with self.db_manager.connection_scope() as conn:
                row = await conn.fetchrow(f"{_SELECT} WHERE name = $1", name)
                return row_to_node(row) if row else None
        except Exception as e:
            logger.error(f"Error reading worker node '{name}' from Postgres: {e}")
            raise QueryError(f"Error reading worker node '{name}': {e}") from e

    async def get_by_id(self, node_id: str) -> Optional[WorkerNode]:
        try:
            async with self.db_manager.connection_scope() as conn:
                row = await conn.fetchrow(f"{_SELECT} WHERE id = $1", node_id)
                return row_to_node(row) if row else None
        except Exception as e:
            logger.error(f"Error reading worker node id '{node_id}' from Postgres: {e}")
            raise QueryError(f"Error reading worker node id '{node_id}': {e}") from e

    async def list_all(self) -> List[WorkerNode]:
        try:
            async with self.db_manager.connection_scope() as conn:
                rows = await conn.fetch(f"{_SELECT} ORDER BY name ASC")
                return [row_to_node(row) for row in rows]
        except Exception as e:
            logger.error(f"Error listing worker nodes from Postgres: {e}")
            raise QueryError(f"Error listing worker nodes: {e}") from e

    async def create(self, node: WorkerNode) -> WorkerNode:
        node = prepare_new(node)
        try:
            async with self.db_manager.connection_scope() as conn:
                row = await conn.fetchrow(
                    f"INSERT INTO worker_nodes ({', '.join(COLUMNS)}) VALUES ({_PLACEHOLDERS}) "
                    f"RETURNING {', '.join(COLUMNS)}",
                    *_params(node),
                )
                logger.info(f"Created worker node record: {node.name}")
                return row_to_node(row)
        except Exception as e:
            logger.error(f"Error creating worker node '{node.name}' in Postgres: {e}")
            raise QueryError(f"Error creating worker node '{node.name}': {e}") from e

    async def update(self, name: str, fields: Dict[str, Any]) -> Optional[WorkerNode]:
        fields = {k: v for k, v in fields.items() if k in COLUMNS and k not in ("id", "name", "created_at")}
        fields.setdefault("updated_at", utc_now())
        columns = list(fields)
        assignments = ", ".join(f"{c} = ${i}" for i, c in enumerate(columns, start=1))
        try:
            async with self.db_manager.connection_scope() as conn:
                row = await conn.fetchrow(
                    f"UPDATE worker_nodes SET {assignments} WHERE name = ${len(columns) + 1} "
                    f"RETURNING {', '.join(COLUMNS)}",
                    *[to_db_value(c, fields[c], timestamps_as_text=False) for c in columns],
                    name,
                )
                return row_to_node(row) if row else None
        except Exception as e:
            logger.error(f"Error updating worker node '{name}' in Postgres: {e}")
            raise QueryError(f"Error updating worker node '{name}': {e}") from e

    async def upsert(self, node: WorkerNode) -> WorkerNode:
        node = prepare_new(node)
        refresh = ", ".join(f"{c} = EXCLUDED.{c}" for c in UPSERT_COLUMNS)
        try:
            async with self.db_manager.connection_scope() as conn:
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO worker_nodes ({', '.join(COLUMNS)}) VALUES ({_PLACEHOLDERS})
                    ON CONFLICT (name) DO UPDATE SET {refresh}
                    RETURNING {', '.join(COLUMNS)}
                    """,
                    *_params(node),
                )
                return row_to_node(row)
        except Exception as e:
            logger.error(f"Error upserting worker node '{node.name}' in Postgres: {e}")
            raise QueryError(f"Error upserting worker node '{node.name}': {e}") from e

    async def delete(self, name: str) -> bool:
        try:
            async with self.db_manager.connection_scope() as conn:
                result = await conn.execute("DELETE FROM worker_nodes WHERE name = $1", name)
                # asyncpg returns the command tag, e.g. "DELETE 1"
                return result.split()[-1] != "0"
        except Exception as e:
            logger.error(f"Error deleting worker node '{name}' from Postgres: {e}")
            raise QueryError(f"Error deleting worker node '{name}': {e}") from e
