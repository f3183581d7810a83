from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from kubefleet.core.exceptions import QueryError
from kubefleet.models.node import NodeStatus, WorkerNode
from kubefleet.storage.columns import COLUMNS
from kubefleet.storage.postgres_node_repository import PostgresNodeStore


def _row(**overrides):
    row = {column: None for column in COLUMNS}
    row.update(
        id="abc123",
        name="worker-1",
        hostname="worker-1",
        ip_address="10.0.0.1",
        cpu_cores=4,
        cpu_architecture="amd64",
        total_memory="16Gi",
        total_storage="100Gi",
        operating_system="linux",
        max_pods=110,
        allocated_cpu=0.0,
        allocated_memory=0.0,
        allocated_storage=0.0,
        current_pods=0,
        status="ACTIVE",
        is_ready=True,
        is_schedulable=True,
        labels='{"zone": "a"}',
        taints="[]",
        created_at=datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc),
    )
    row.update(overrides)
    return row


@pytest.fixture
def connection_mock():
    conn = AsyncMock()
    conn.fetch.return_value = []
    conn.fetchrow.return_value = None
    return conn


@pytest.fixture
def mock_db_manager(connection_mock):
    manager = MagicMock()

    @asynccontextmanager
    async def conn_scope():
        yield connection_mock

    manager.connection_scope = conn_scope
    return manager


@pytest.fixture
def repository(mock_db_manager):
    return PostgresNodeStore(mock_db_manager)


@pytest.mark.asyncio
async def test_get_by_name(repository, connection_mock):
    connection_mock.fetchrow.return_value = _row()

    node = await repository.get_by_name("worker-1")

    assert node.id == "abc123"
    assert node.status == NodeStatus.ACTIVE
    assert node.labels == {"zone": "a"}
    args = connection_mock.fetchrow.call_args[0]
    assert "WHERE name = $1" in args[0]
    assert args[1] == "worker-1"


@pytest.mark.asyncio
async def test_get_by_id_missing(repository, connection_mock):
    assert await repository.get_by_id("nope") is None


@pytest.mark.asyncio
async def test_list_all(repository, connection_mock):
    connection_mock.fetch.return_value = [_row(), _row(id="def456", name="worker-2")]

    nodes = await repository.list_all()

    assert [n.name for n in nodes] == ["worker-1", "worker-2"]
    assert "ORDER BY name ASC" in connection_mock.fetch.call_args[0][0]


@pytest.mark.asyncio
async def test_upsert_refreshes_only_observed_columns(repository, connection_mock):
    connection_mock.fetchrow.return_value = _row()

    await repository.upsert(WorkerNode(name="worker-1", status=NodeStatus.ACTIVE))

    query, *params = connection_mock.fetchrow.call_args[0]
    assert "ON CONFLICT (name) DO UPDATE SET" in query
    assert "cpu_cores = EXCLUDED.cpu_cores" in query
    assert "status = EXCLUDED.status" not in query
    assert "allocated_cpu = EXCLUDED.allocated_cpu" not in query
    assert len(params) == len(COLUMNS)
    assert params[COLUMNS.index("status")] == "ACTIVE"
    assert isinstance(params[COLUMNS.index("created_at")], datetime)


@pytest.mark.asyncio
async def test_update_numbers_placeholders(repository, connection_mock):
    connection_mock.fetchrow.return_value = _row(status="MAINTENANCE")

    node = await repository.update("worker-1", {"status": NodeStatus.MAINTENANCE})

    query, *params = connection_mock.fetchrow.call_args[0]
    assert "status = $1" in query
    assert "updated_at = $2" in query
    assert "WHERE name = $3" in query
    assert params[0] == "MAINTENANCE"
    assert params[-1] == "worker-1"
    assert node.status == NodeStatus.MAINTENANCE


@pytest.mark.asyncio
async def test_update_unknown(repository, connection_mock):
    assert await repository.update("ghost", {"current_pods": 1}) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("tag, expected", [("DELETE 1", True), ("DELETE 0", False)])
async def test_delete(repository, connection_mock, tag, expected):
    connection_mock.execute.return_value = tag

    assert await repository.delete("worker-1") is expected


@pytest.mark.asyncio
async def test_errors_are_wrapped(repository, connection_mock):
    connection_mock.fetch.side_effect = Exception("connection reset")

    with pytest.raises(QueryError, match="connection reset"):
        await repository.list_all()
