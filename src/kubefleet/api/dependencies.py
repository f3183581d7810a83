# src/kubefleet/api/dependencies.py
"""
FastAPI dependency injection functions.

Route handlers receive the FleetService through Depends(), so tests can
swap in a service wired to fakes via ``app.dependency_overrides``.
"""

from kubefleet.core.service import FleetService


async def get_fleet_service() -> FleetService:
    """Provides the FleetService instance via the factory."""
    from kubefleet.core.factory import get_fleet_service as factory_get_fleet_service

    return factory_get_fleet_service()
