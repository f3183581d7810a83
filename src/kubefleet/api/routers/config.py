# src/kubefleet/api/routers/config.py
"""
API routes for exposing non-sensitive configuration and version information.
"""

from fastapi import APIRouter

from kubefleet import __version__
from kubefleet.api.schemas import ConfigResponse, HealthResponse, VersionResponse
from kubefleet.core.config import config

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    return HealthResponse(status="ok", version=__version__)


@router.get("/version", response_model=VersionResponse)
async def version():
    """Return the current application version."""
    return VersionResponse(version=__version__)


@router.get("/config", response_model=ConfigResponse)
async def get_config():
    """Return non-sensitive configuration values.

    The database connection string is never exposed.
    """
    return ConfigResponse(
        db_type=config.DB_TYPE,
        log_level=config.LOG_LEVEL,
        sync_interval=config.SYNC_INTERVAL,
        sync_concurrency=config.SYNC_CONCURRENCY,
        drain_concurrency=config.DRAIN_CONCURRENCY,
        drain_grace_period_seconds=config.DRAIN_GRACE_PERIOD_SECONDS,
        default_max_pods=config.DEFAULT_MAX_PODS,
        metrics_enabled=config.METRICS_ENABLED,
        metrics_api=f"{config.METRICS_API_GROUP}/{config.METRICS_API_VERSION}",
        api_host=config.API_HOST,
        api_port=config.API_PORT,
    )
