# src/kubefleet/cli/main.py
"""
`kubefleet` entry point: the `nodes` and `start` command groups plus version output.
"""

import logging

import typer
from typing_extensions import Annotated

from .. import __version__
from ..core.config import config
from . import nodes, start

logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)

app = typer.Typer(
    name="kubefleet",
    help="Keep a worker-node inventory in sync with your Kubernetes cluster, and cordon, uncordon or drain its nodes.",
    add_completion=False,
)
app.add_typer(nodes.app, name="nodes")
app.add_typer(start.app, name="start")


def _echo_version(value: bool):
    if value:
        typer.echo(f"KubeFleet version: {__version__}")
        raise typer.Exit()


@app.command()
def version():
    """Show the KubeFleet version."""
    _echo_version(True)


@app.callback()
def main(
    show_version: Annotated[
        bool,
        typer.Option("--version", callback=_echo_version, is_eager=True, help="Show the version and exit."),
    ] = False,
):
    pass
