import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import typer

import kubefleet.cli.start as start_mod
from kubefleet.cli.start import run_service, start, sync_fleet
from kubefleet.models.stats import SyncResult, SyncStats


@pytest.fixture
def mock_service(monkeypatch):
    service = MagicMock()
    service.sync_cluster_state = AsyncMock(
        return_value=SyncResult(stats=SyncStats(total_live_nodes=3, synced_nodes=3))
    )
    service.close = AsyncMock()
    monkeypatch.setattr(start_mod, "get_fleet_service", lambda: service)
    return service


@pytest.fixture
def mock_db(monkeypatch):
    manager = MagicMock()
    manager.connect = AsyncMock()
    manager.close = AsyncMock()
    monkeypatch.setattr(start_mod, "db_manager", manager)
    return manager


@pytest.mark.asyncio
async def test_sync_fleet_runs_one_pass(mock_service):
    await sync_fleet()

    mock_service.sync_cluster_state.assert_awaited_once()


@pytest.mark.asyncio
async def test_run_service_syncs_until_shutdown(mock_service, mock_db):
    shutdown = asyncio.Event()

    async def stop_soon():
        while not mock_service.sync_cluster_state.await_count:
            await asyncio.sleep(0.01)
        shutdown.set()

    await asyncio.wait_for(asyncio.gather(run_service("1h", shutdown), stop_soon()), timeout=2)

    mock_db.connect.assert_awaited_once()
    mock_db.close.assert_awaited_once()
    mock_service.close.assert_awaited_once()


def test_start_rejects_invalid_interval():
    mock_ctx = MagicMock()
    mock_ctx.invoked_subcommand = None

    with patch("asyncio.run") as mock_run:
        with pytest.raises(typer.BadParameter):
            start(mock_ctx, interval="every hour")

    mock_run.assert_not_called()


def test_start_initializes_async_loop():
    """Test that start() calls asyncio.run."""
    mock_ctx = MagicMock()
    mock_ctx.invoked_subcommand = None

    with patch("asyncio.run") as mock_run:
        start(mock_ctx, interval="30s")

    mock_run.assert_called_once()
    mock_run.call_args[0][0].close()


def test_start_failure_exits_1():
    mock_ctx = MagicMock()
    mock_ctx.invoked_subcommand = None

    def boom(coro):
        coro.close()
        raise RuntimeError("database unreachable")

    with patch("asyncio.run", side_effect=boom):
        with pytest.raises(typer.Exit):
            start(mock_ctx, interval="5m")
