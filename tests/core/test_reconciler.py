# tests/core/test_reconciler.py
"""
Tests for the reconciliation pass against an in-memory cluster and an
in-memory SQLite store.
"""

from unittest.mock import AsyncMock

import pytest

from kubefleet.core.exceptions import ClusterUnavailable, NodeNotFound, QueryError
from kubefleet.core.reconciler import Reconciler
from kubefleet.models.node import NodeStatus, NodeUsage, WorkerNode

VOLATILE = {"last_heartbeat", "updated_at"}


@pytest.fixture
def reconciler(fake_reader, node_store):
    return Reconciler(fake_reader, node_store)


class TestReconcile:
    async def test_auto_provisions_live_nodes(self, reconciler, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        fake_reader.add_node(make_live_node("worker-2", ready=False))

        nodes = await reconciler.reconcile()

        assert [n.name for n in nodes] == ["worker-1", "worker-2"]
        stored = {n.name: n for n in await node_store.list_all()}
        assert stored["worker-1"].id
        assert stored["worker-1"].status == NodeStatus.ACTIVE
        assert stored["worker-1"].last_heartbeat is not None
        assert stored["worker-2"].status == NodeStatus.NOT_READY

    async def test_writes_back_derived_allocation(self, reconciler, fake_reader, node_store, make_live_node, make_pod):
        fake_reader.add_node(make_live_node("worker-1"), pods=[make_pod("a"), make_pod("b")])

        await reconciler.reconcile()

        stored = await node_store.get_by_name("worker-1")
        assert stored.allocated_cpu == 1.0
        assert stored.allocated_memory == 2.0
        assert stored.current_pods == 2

    async def test_is_idempotent(self, reconciler, fake_reader, make_live_node, make_pod):
        fake_reader.add_node(make_live_node("worker-1"), pods=[make_pod("a")])
        fake_reader.add_node(make_live_node("worker-2", ready=False))

        first = await reconciler.reconcile()
        second = await reconciler.reconcile()

        assert [n.model_dump(exclude=VOLATILE) for n in first] == [n.model_dump(exclude=VOLATILE) for n in second]

    async def test_keeps_record_id_across_passes(self, reconciler, fake_reader, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))

        first = await reconciler.reconcile()
        second = await reconciler.reconcile()

        assert first[0].id == second[0].id

    async def test_health_check_is_stamped_on_creation(self, reconciler, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))

        first = await reconciler.reconcile()
        await reconciler.reconcile()

        stored = await node_store.get_by_name("worker-1")
        assert first[0].last_health_check is not None
        assert stored.last_health_check == first[0].last_health_check
        assert stored.last_heartbeat >= stored.last_health_check

    async def test_disappeared_node_is_marked_inactive(self, reconciler, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        fake_reader.add_node(make_live_node("worker-2"))
        await reconciler.reconcile()

        fake_reader.remove_node("worker-2")
        result = await reconciler.sync()

        gone = next(n for n in result.nodes if n.name == "worker-2")
        assert gone.status == NodeStatus.INACTIVE
        assert gone.is_ready is False
        assert gone.is_schedulable is False
        assert gone.in_cluster is False
        assert result.stats.disappeared_nodes == 1

        stored = await node_store.get_by_name("worker-2")
        assert stored.status == NodeStatus.INACTIVE
        assert stored.is_ready is False
        assert stored.is_schedulable is False

    async def test_returning_node_becomes_active_again(self, reconciler, fake_reader, make_live_node):
        live = fake_reader.add_node(make_live_node("worker-1"))
        await reconciler.reconcile()
        fake_reader.remove_node("worker-1")
        await reconciler.reconcile()

        fake_reader.add_node(live)
        nodes = await reconciler.reconcile()

        assert nodes[0].status == NodeStatus.ACTIVE
        assert nodes[0].is_schedulable is True

    async def test_maintenance_survives_reconciliation(self, reconciler, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        await reconciler.reconcile()
        await node_store.update("worker-1", {"status": NodeStatus.MAINTENANCE})

        nodes = await reconciler.reconcile()

        assert nodes[0].status == NodeStatus.MAINTENANCE

    async def test_cluster_unavailable_propagates(self, reconciler, fake_reader, node_store):
        await node_store.create(WorkerNode(name="worker-1", status=NodeStatus.ACTIVE, is_ready=True))
        fake_reader.available = False

        with pytest.raises(ClusterUnavailable):
            await reconciler.reconcile()

        assert (await node_store.get_by_name("worker-1")).status == NodeStatus.ACTIVE

    async def test_metrics_unavailable_degrades(self, reconciler, fake_reader, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))

        nodes = await reconciler.reconcile()

        assert nodes[0].metrics_available is False
        assert nodes[0].cpu_utilization is None
        assert nodes[0].memory_utilization is None

    async def test_metrics_snapshot_is_applied(self, reconciler, fake_reader, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        fake_reader.add_node(make_live_node("worker-2"))
        fake_reader.metrics = {"worker-1": NodeUsage(cpu_cores=1.0, memory_gb=8.0)}

        nodes = {n.name: n for n in await reconciler.reconcile()}

        assert nodes["worker-1"].cpu_utilization == 25.0
        assert nodes["worker-1"].memory_utilization == 50.0
        assert nodes["worker-2"].metrics_available is False

    async def test_store_failure_skips_only_that_node(self, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        fake_reader.add_node(make_live_node("worker-2"))
        real_upsert = node_store.upsert

        async def flaky_upsert(node):
            if node.name == "worker-1":
                raise QueryError("disk I/O error")
            return await real_upsert(node)

        node_store.upsert = AsyncMock(side_effect=flaky_upsert)
        result = await Reconciler(fake_reader, node_store).sync()

        assert [n.name for n in result.nodes] == ["worker-2"]
        assert result.success is False
        assert result.stats.total_live_nodes == 2
        assert result.stats.synced_nodes == 1
        assert result.stats.skipped_nodes == 1

    async def test_bounded_concurrency(self, fake_reader, node_store, make_live_node):
        for i in range(6):
            fake_reader.add_node(make_live_node(f"worker-{i}"))

        result = await Reconciler(fake_reader, node_store, concurrency=2).sync()

        assert result.success is True
        assert [n.name for n in result.nodes] == [f"worker-{i}" for i in range(6)]


class TestGetNode:
    async def test_by_name_auto_provisions(self, reconciler, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))

        node = await reconciler.get_node("worker-1")

        assert node.name == "worker-1"
        assert node.id is not None
        assert await node_store.get_by_name("worker-1") is not None

    async def test_by_id(self, reconciler, fake_reader, node_store, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        record = await node_store.create(WorkerNode(name="worker-1"))

        node = await reconciler.get_node(record.id)

        assert node.name == "worker-1"
        assert node.id == record.id

    async def test_uses_single_node_metrics(self, reconciler, fake_reader, make_live_node):
        fake_reader.add_node(make_live_node("worker-1"))
        fake_reader.metrics = {"worker-1": NodeUsage(cpu_cores=2.0, memory_gb=4.0)}

        node = await reconciler.get_node("worker-1")

        assert node.cpu_utilization == 50.0

    async def test_stored_but_not_live(self, reconciler, node_store):
        await node_store.create(WorkerNode(name="worker-9", status=NodeStatus.ACTIVE, is_ready=True))

        node = await reconciler.get_node("worker-9")

        assert node.status == NodeStatus.INACTIVE
        assert node.in_cluster is False

    async def test_unknown_identifier(self, reconciler):
        with pytest.raises(NodeNotFound):
            await reconciler.get_node("ghost")
