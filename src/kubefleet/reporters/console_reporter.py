# src/kubefleet/reporters/console_reporter.py
"""
Renders worker nodes, fleet statistics and drain results as rich tables.
"""

from typing import List, Optional

from rich.console import Console
from rich.table import Table

from ..models.drain import DrainResult, EvictionStatus
from ..models.node import EnrichedNode, NodeStatus
from ..models.query import PageInfo
from ..models.stats import ClusterStats, SyncResult

STATUS_STYLES = {
    NodeStatus.ACTIVE: "green",
    NodeStatus.NOT_READY: "red",
    NodeStatus.INACTIVE: "dim",
    NodeStatus.MAINTENANCE: "yellow",
    NodeStatus.PENDING: "blue",
}


def _percent(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.2f}%"


def _yes_no(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


class ConsoleReporter:
    """
    Renders KubeFleet data to the console using the 'rich' library.
    """

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def report_nodes(self, nodes: List[EnrichedNode], title: str = "Worker Nodes", page: PageInfo = None):
        if not nodes:
            self.console.print("No worker nodes to report.", style="yellow")
            return

        table = Table(title=title, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Status")
        table.add_column("Ready", justify="center")
        table.add_column("Schedulable", justify="center")
        table.add_column("IP", style="dim")
        table.add_column("CPU (alloc/cap)", justify="right")
        table.add_column("Memory GB (alloc/cap)", justify="right")
        table.add_column("Pods", justify="right")
        table.add_column("CPU use", justify="right")
        table.add_column("Mem use", justify="right")

        for node in nodes:
            style = STATUS_STYLES.get(node.status, "white")
            table.add_row(
                node.name,
                f"[{style}]{node.status.value}[/{style}]",
                _yes_no(node.is_ready),
                _yes_no(node.is_schedulable),
                node.ip_address or "-",
                f"{node.allocated_cpu:.2f}/{node.cpu_cores}",
                f"{node.allocated_memory:.2f}/{node.total_memory}",
                f"{node.current_pods}/{node.max_pods}",
                _percent(node.cpu_utilization),
                _percent(node.memory_utilization),
            )

        self.console.print(table)
        if page:
            self.console.print(
                f"Page {page.page}/{max(page.total_pages, 1)} - {page.total} nodes in total", style="dim"
            )

    def report_node(self, node: EnrichedNode):
        """Key/value view of a single node."""
        table = Table(title=f"Worker Node {node.name}", show_header=False)
        table.add_column("Field", style="bold cyan")
        table.add_column("Value")

        rows = [
            ("ID", node.id or "-"),
            ("Status", node.status.value),
            ("In cluster", _yes_no(node.in_cluster)),
            ("Ready", _yes_no(node.is_ready)),
            ("Schedulable", _yes_no(node.is_schedulable)),
            ("Hostname", node.hostname),
            ("IP address", node.ip_address or "-"),
            ("Architecture / OS", f"{node.cpu_architecture} / {node.operating_system}"),
            ("Kubelet", node.kubelet_version or "-"),
            ("Runtime", node.container_runtime or "-"),
            ("CPU", f"{node.allocated_cpu:.2f} of {node.cpu_cores} cores requested"),
            ("Memory", f"{node.allocated_memory:.2f} GB of {node.total_memory} requested"),
            ("Pods", f"{node.current_pods}/{node.max_pods}"),
            ("CPU utilization", _percent(node.cpu_utilization)),
            ("Memory utilization", _percent(node.memory_utilization)),
            ("Conditions", ", ".join(f"{k}={v}" for k, v in node.conditions.items()) or "-"),
            ("Last heartbeat", node.last_heartbeat.isoformat() if node.last_heartbeat else "-"),
        ]
        for field, value in rows:
            table.add_row(field, str(value))
        self.console.print(table)

    def report_stats(self, stats: ClusterStats):
        summary = stats.cluster
        self.console.print(
            f"[bold]Nodes:[/bold] {summary.total_nodes} total, {summary.ready_nodes} ready, "
            f"{summary.schedulable_nodes} schedulable"
        )

        status_table = Table(title="Node Status", header_style="bold magenta")
        for column in ("Active", "Not ready", "Inactive", "Maintenance", "Pending"):
            status_table.add_column(column, justify="right")
        h = stats.node_status
        status_table.add_row(*(str(v) for v in (h.active, h.not_ready, h.inactive, h.maintenance, h.pending)))
        self.console.print(status_table)

        resources = stats.resources
        resource_table = Table(title="Resources", header_style="bold magenta")
        resource_table.add_column("Resource", style="cyan")
        resource_table.add_column("Total", justify="right")
        resource_table.add_column("Allocated", justify="right")
        resource_table.add_column("Utilization", justify="right")
        resource_table.add_row(
            "CPU (cores)",
            f"{resources.cpu.total:.2f}",
            f"{resources.cpu.allocated:.2f}",
            _percent(resources.cpu.utilization),
        )
        resource_table.add_row(
            "Memory (GB)",
            f"{resources.memory.total:.2f}",
            f"{resources.memory.allocated:.2f}",
            _percent(resources.memory.utilization),
        )
        resource_table.add_row(
            "Pods",
            str(resources.pods.max_total),
            str(resources.pods.current_total),
            _percent(resources.pods.utilization),
        )
        self.console.print(resource_table)

    def report_sync(self, result: SyncResult):
        s = result.stats
        style = "green" if result.success else "yellow"
        self.console.print(
            f"[{style}]Synchronized {s.synced_nodes}/{s.total_live_nodes} live nodes[/{style}] "
            f"({s.skipped_nodes} skipped, {s.disappeared_nodes} no longer in the cluster)"
        )

    def report_drain(self, result: DrainResult):
        self.console.print(
            f"[bold]Drained {result.node}:[/bold] {result.pods_evicted} evicted, {result.pods_failed} failed"
        )
        if not result.eviction_results:
            return

        table = Table(header_style="bold magenta")
        table.add_column("Pod", style="cyan")
        table.add_column("Namespace")
        table.add_column("Result")
        table.add_column("Error", style="dim")
        for r in result.eviction_results:
            outcome = "[green]evicted[/green]" if r.status == EvictionStatus.EVICTED else "[red]failed[/red]"
            table.add_row(r.name, r.namespace, outcome, r.error or "")
        self.console.print(table)
