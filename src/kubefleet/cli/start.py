# src/kubefleet/cli/start.py
"""
Start command for the KubeFleet CLI.

Connects the database and runs a reconciliation pass every SYNC_INTERVAL
until SIGINT or SIGTERM.
"""

import asyncio
import logging
import signal
import traceback
from typing import Optional

import typer
from typing_extensions import Annotated

from ..core.config import config
from ..core.db import db_manager
from ..core.factory import get_fleet_service
from ..core.scheduler import Scheduler, parse_interval

logger = logging.getLogger(__name__)

app = typer.Typer(name="start", help="Start the periodic cluster synchronization service.")


async def sync_fleet() -> None:
    """One scheduled reconciliation pass."""
    result = await get_fleet_service().sync_cluster_state()
    s = result.stats
    logger.info(
        f"Scheduled sync: {s.synced_nodes}/{s.total_live_nodes} nodes synced, "
        f"{s.skipped_nodes} skipped, {s.disappeared_nodes} no longer in the cluster."
    )


async def run_service(interval: str, shutdown: asyncio.Event) -> None:
    await db_manager.connect()
    scheduler = Scheduler()
    try:
        # The first run happens immediately, then every interval.
        scheduler.add_job_from_string(sync_fleet, interval)
        logger.info("KubeFleet is running. Press CTRL+C to exit.")
        await shutdown.wait()
    finally:
        await scheduler.stop()
        await get_fleet_service().close()
        await db_manager.close()
        logger.info("KubeFleet service stopped.")


@app.callback(invoke_without_command=True)
def start(
    ctx: typer.Context,
    interval: Annotated[
        Optional[str],
        typer.Option("--interval", help="Sync interval such as '30s', '5m' or '1h'. Defaults to SYNC_INTERVAL."),
    ] = None,
) -> None:
    """
    Initialize the database (if needed) and start the scheduler loop.
    """
    if ctx.invoked_subcommand is not None:
        return

    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    interval = interval or config.SYNC_INTERVAL
    try:
        parse_interval(interval)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--interval")

    logger.info("Initializing KubeFleet...")

    async def _main():
        shutdown = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown.set)
        await run_service(interval, shutdown)

    try:
        asyncio.run(_main())
    except Exception as e:
        logger.error(f"An unexpected error occurred during startup: {e}")
        logger.error("Startup failed: %s", traceback.format_exc())
        raise typer.Exit(code=1)
