# tests/conftest.py

from types import SimpleNamespace

import pytest

from kubefleet.core.db import DatabaseManager
from kubefleet.core.exceptions import ClusterUnavailable, EvictionFailed, MetricsUnavailable, NodeNotFound
from kubefleet.core.service import FleetService
from kubefleet.storage.sqlite_node_repository import SQLiteNodeStore


def build_live_node(
    name,
    cpu="4",
    memory="16Gi",
    pods="110",
    ready=True,
    unschedulable=False,
    ip="10.0.0.1",
    hostname=None,
    labels=None,
    taints=None,
    arch="amd64",
):
    """A lightweight stand-in for a kubernetes V1Node."""
    capacity = {"cpu": cpu, "memory": memory, "pods": pods, "ephemeral-storage": "100Gi"}
    addresses = [SimpleNamespace(type="InternalIP", address=ip)]
    if hostname is not False:
        addresses.append(SimpleNamespace(type="Hostname", address=hostname or name))
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, labels=labels or {}),
        spec=SimpleNamespace(unschedulable=unschedulable, taints=taints),
        status=SimpleNamespace(
            addresses=addresses,
            capacity=capacity,
            allocatable=dict(capacity),
            conditions=[
                SimpleNamespace(type="MemoryPressure", status="False"),
                SimpleNamespace(type="Ready", status="True" if ready else "False"),
            ],
            node_info=SimpleNamespace(
                architecture=arch,
                operating_system="linux",
                kernel_version="6.1.0-18-amd64",
                os_image="Debian GNU/Linux 12 (bookworm)",
                container_runtime_version="containerd://1.7.13",
                kubelet_version="v1.29.2",
            ),
        ),
    )


def build_pod(name, namespace="default", cpu="500m", memory="1Gi", empty_dir=False):
    """A lightweight stand-in for a kubernetes V1Pod with one container."""
    volumes = [SimpleNamespace(name="scratch", empty_dir=SimpleNamespace(medium=None))] if empty_dir else None
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace=namespace),
        spec=SimpleNamespace(
            containers=[SimpleNamespace(name="app", resources=SimpleNamespace(requests={"cpu": cpu, "memory": memory}))],
            volumes=volumes,
        ),
    )


class FakeClusterReader:
    """
    In-memory cluster with the same async surface as ClusterStateReader.
    Records every schedulability patch and eviction it receives.
    """

    def __init__(self):
        self.nodes = {}
        self.pods = {}
        self.metrics = None
        self.failing_evictions = set()
        self.available = True
        self.schedulable_calls = []
        self.evictions = []
        self.closed = False

    def add_node(self, live, pods=()):
        self.nodes[live.metadata.name] = live
        self.pods[live.metadata.name] = list(pods)
        return live

    def remove_node(self, name):
        self.nodes.pop(name, None)
        self.pods.pop(name, None)

    def _check(self):
        if not self.available:
            raise ClusterUnavailable("control plane unreachable")

    async def list_nodes(self):
        self._check()
        return list(self.nodes.values())

    async def get_node(self, name):
        self._check()
        return self.nodes.get(name)

    async def list_pods_on_node(self, name):
        self._check()
        return list(self.pods.get(name, []))

    async def set_schedulable(self, name, schedulable):
        self._check()
        if name not in self.nodes:
            raise NodeNotFound(name)
        self.schedulable_calls.append((name, schedulable))
        self.nodes[name].spec.unschedulable = not schedulable
        return self.nodes[name]

    async def evict_pod(self, name, namespace, grace_period_seconds):
        self.evictions.append((name, namespace, grace_period_seconds))
        if name in self.failing_evictions:
            raise EvictionFailed(name, namespace, "429 Too Many Requests")

    async def list_node_metrics(self):
        if self.metrics is None:
            raise MetricsUnavailable(reason="metrics-server is not installed")
        return dict(self.metrics)

    async def get_node_metrics(self, name):
        if self.metrics is None or name not in self.metrics:
            raise MetricsUnavailable(node=name, reason="no metrics for node")
        return self.metrics[name]

    async def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def mock_settings_env_vars(monkeypatch):
    """
    Keeps the environment predictable for every test.
    """
    monkeypatch.setenv("DB_TYPE", "sqlite")
    monkeypatch.setenv("DB_PATH", ":memory:")


@pytest.fixture
def make_live_node():
    return build_live_node


@pytest.fixture
def make_pod():
    return build_pod


@pytest.fixture
def fake_reader():
    return FakeClusterReader()


@pytest.fixture
async def db_manager():
    """A DatabaseManager connected to a fresh in-memory SQLite database."""
    manager = DatabaseManager(db_type="sqlite", db_path=":memory:")
    await manager.connect()
    yield manager
    await manager.close()


@pytest.fixture
async def node_store(db_manager):
    return SQLiteNodeStore(db_manager)


@pytest.fixture
async def fleet_service(fake_reader, node_store):
    return FleetService(fake_reader, node_store)
