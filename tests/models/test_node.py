from kubefleet.models.node import EnrichedNode, NodeStatus, WorkerNode


def test_worker_node_defaults():
    node = WorkerNode(name="worker-1")

    assert node.status == NodeStatus.PENDING
    assert node.is_schedulable is True
    assert node.is_ready is False
    assert node.max_pods == 110
    assert node.labels == {}
    assert node.taints == []


def test_status_serializes_as_plain_string():
    assert WorkerNode(name="worker-1", status=NodeStatus.MAINTENANCE).model_dump(mode="json")["status"] == "MAINTENANCE"


def test_is_online_requires_all_three():
    online = EnrichedNode(name="a", status=NodeStatus.ACTIVE, is_ready=True, is_schedulable=True)

    assert online.is_online
    assert not online.model_copy(update={"is_ready": False}).is_online
    assert not online.model_copy(update={"is_schedulable": False}).is_online
    assert not online.model_copy(update={"status": NodeStatus.MAINTENANCE}).is_online


def test_persisted_fields_excludes_live_only_and_identity():
    node = EnrichedNode(
        id="abc",
        name="worker-1",
        conditions={"Ready": "True"},
        cpu_utilization=12.5,
        allocated_cpu=1.5,
    )

    fields = node.persisted_fields()

    assert fields["allocated_cpu"] == 1.5
    assert "conditions" not in fields
    assert "cpu_utilization" not in fields
    assert "id" not in fields
    assert "name" not in fields
