# tests/api/conftest.py
"""
Shared fixtures for API tests.
Uses FastAPI's TestClient with dependency overrides to inject a mock FleetService,
and an httpx AsyncClient for tests that run the real service over the fake cluster.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from kubefleet.api.app import create_app
from kubefleet.api.dependencies import get_fleet_service
from kubefleet.models.node import EnrichedNode, NodeStatus


@pytest.fixture
def mock_service():
    """Returns a mock FleetService."""
    service = AsyncMock()
    service.list_online = AsyncMock(return_value=[])
    service.list_offline = AsyncMock(return_value=[])
    return service


@pytest.fixture
def client(mock_service):
    """Creates a TestClient with the FleetService dependency overridden."""
    app = create_app()
    app.dependency_overrides[get_fleet_service] = lambda: mock_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def live_client(fleet_service):
    """An async client backed by a real FleetService over the in-memory cluster and store."""
    app = create_app()
    app.dependency_overrides[get_fleet_service] = lambda: fleet_service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def sample_nodes():
    """Returns a list of sample EnrichedNode objects for testing."""
    ts = datetime(2026, 2, 8, 12, 0, 0, tzinfo=timezone.utc)
    return [
        EnrichedNode(
            id="a1",
            name="worker-1",
            hostname="worker-1",
            ip_address="10.0.0.1",
            cpu_cores=4,
            total_memory="16Gi",
            status=NodeStatus.ACTIVE,
            is_ready=True,
            is_schedulable=True,
            last_heartbeat=ts,
        ),
        EnrichedNode(
            id="b2",
            name="worker-2",
            hostname="worker-2",
            ip_address="10.0.0.2",
            cpu_cores=4,
            total_memory="16Gi",
            status=NodeStatus.NOT_READY,
            is_ready=False,
            is_schedulable=True,
            last_heartbeat=ts,
        ),
    ]
