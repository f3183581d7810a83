# src/kubefleet/cli/__init__.py
"""
KubeFleet CLI Package

This package exposes the top-level Typer `app` so tests and the console
entrypoint can import `kubefleet.cli.app`.
"""

from .main import app

__all__ = ["app"]
