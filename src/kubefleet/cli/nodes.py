# src/kubefleet/cli/nodes.py
"""
`kubefleet nodes ...` commands: inspect the reconciled fleet and run
lifecycle operations against single nodes.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from typing_extensions import Annotated

from ..core.config import config
from ..core.db import db_manager
from ..core.exceptions import KubeFleetError
from ..core.factory import get_fleet_service
from ..core.service import FleetService
from ..models.drain import DrainOptions
from ..models.node import NodeStatus
from ..models.query import NodeFilters, Pagination, SortOptions
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)

app = typer.Typer(help="Inspect and operate worker nodes.", add_completion=False)

T = TypeVar("T")


def run_operation(operation: Callable[[FleetService], Awaitable[T]]) -> T:
    """
    Runs one service operation with a connected database and maps domain
    errors to exit code 1.
    """

    async def _runner():
        await db_manager.connect()
        service = get_fleet_service()
        try:
            return await operation(service)
        finally:
            await service.close()
            await db_manager.close()

    try:
        return asyncio.run(_runner())
    except (KubeFleetError, ValueError) as e:
        logger.error(f"{e}")
        raise typer.Exit(code=1)


JsonOption = Annotated[bool, typer.Option("--json", help="Print JSON instead of a table.")]


@app.command("list")
def list_nodes(
    status: Annotated[Optional[NodeStatus], typer.Option(help="Only nodes with this status.")] = None,
    ready: Annotated[Optional[bool], typer.Option("--ready/--not-ready", help="Filter on readiness.")] = None,
    schedulable: Annotated[
        Optional[bool], typer.Option("--schedulable/--unschedulable", help="Filter on schedulability.")
    ] = None,
    search: Annotated[Optional[str], typer.Option(help="Substring of name, hostname, IP, arch or OS.")] = None,
    page: Annotated[int, typer.Option(min=1)] = 1,
    limit: Annotated[int, typer.Option(min=1, max=500)] = 10,
    sort_by: Annotated[str, typer.Option(help="Node field to sort by.")] = "name",
    desc: Annotated[bool, typer.Option("--desc", help="Sort descending.")] = False,
    as_json: JsonOption = False,
):
    """List worker nodes after reconciling with the cluster."""
    filters = NodeFilters(status=status, is_ready=ready, is_schedulable=schedulable, search=search)
    sort = SortOptions(sort_by=sort_by, sort_order="desc" if desc else "asc")
    result = run_operation(lambda s: s.list_worker_nodes(filters, Pagination(page=page, limit=limit), sort))
    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        ConsoleReporter().report_nodes(result.data, page=result.pagination)


@app.command("get")
def get_node(
    identifier: Annotated[str, typer.Argument(help="Store id or node name.")],
    as_json: JsonOption = False,
):
    """Show one worker node."""
    node = run_operation(lambda s: s.get_worker_node(identifier))
    if as_json:
        typer.echo(node.model_dump_json(indent=2))
    else:
        ConsoleReporter().report_node(node)


@app.command("stats")
def stats(as_json: JsonOption = False):
    """Show fleet-wide counts and utilization."""
    result = run_operation(lambda s: s.get_cluster_stats())
    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        ConsoleReporter().report_stats(result)


@app.command("online")
def online():
    """List nodes that are ready, schedulable and ACTIVE."""
    ConsoleReporter().report_nodes(run_operation(lambda s: s.list_online()), title="Online Nodes")


@app.command("offline")
def offline():
    """List every node that is not online."""
    ConsoleReporter().report_nodes(run_operation(lambda s: s.list_offline()), title="Offline Nodes")


@app.command("sync")
def sync():
    """Run one reconciliation pass."""
    ConsoleReporter().report_sync(run_operation(lambda s: s.sync_cluster_state()))


@app.command("cordon")
def cordon(identifier: Annotated[str, typer.Argument(help="Store id or node name.")]):
    """Mark a node unschedulable."""
    node = run_operation(lambda s: s.cordon(identifier))
    typer.echo(f"Node {node.name} cordoned.")


@app.command("uncordon")
def uncordon(identifier: Annotated[str, typer.Argument(help="Store id or node name.")]):
    """Mark a node schedulable again."""
    node = run_operation(lambda s: s.uncordon(identifier))
    typer.echo(f"Node {node.name} uncordoned.")


@app.command("drain")
def drain(
    identifier: Annotated[str, typer.Argument(help="Store id or node name.")],
    grace_period: Annotated[
        Optional[int], typer.Option("--grace-period", min=0, help="Eviction grace period in seconds.")
    ] = None,
    delete_local_data: Annotated[
        bool, typer.Option("--delete-local-data", help="Accept that emptyDir data is deleted with evicted pods.")
    ] = False,
):
    """Cordon a node and evict every pod on it."""
    options = DrainOptions(
        grace_period_seconds=config.DRAIN_GRACE_PERIOD_SECONDS if grace_period is None else grace_period,
        delete_local_data=delete_local_data,
    )
    result = run_operation(lambda s: s.drain(identifier, options))
    ConsoleReporter().report_drain(result)


@app.command("delete")
def delete(
    identifier: Annotated[str, typer.Argument(help="Store id or node name.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """Delete the persisted record of a node. The live node is not touched."""
    if not yes:
        typer.confirm(f"Delete the record of worker node '{identifier}'?", abort=True)
    if not run_operation(lambda s: s.delete_worker_node(identifier)):
        logger.error(f"Worker node not found: {identifier}")
        raise typer.Exit(code=1)
    typer.echo(f"Worker node record {identifier} deleted.")
