# src/kubefleet/api/app.py
"""
FastAPI application factory for the KubeFleet API.

Uses the factory pattern so the app can be created with or without
lifespan management (e.g., tests skip DB initialization).
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kubefleet import __version__
from kubefleet.api.routers import config as config_router
from kubefleet.api.routers import workers
from kubefleet.core.config import config
from kubefleet.core.exceptions import (
    ClusterUnavailable,
    DatabaseError,
    KubeFleetError,
    NodeNotFound,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown."""
    logger.info("Starting KubeFleet API...")
    from kubefleet.core.db import db_manager
    from kubefleet.core.factory import get_fleet_service

    await db_manager.connect()
    logger.info("Database connection established.")
    yield
    logger.info("Shutting down KubeFleet API...")
    await get_fleet_service().close()
    await db_manager.close()


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """Maps domain errors to HTTP status codes."""

    @app.exception_handler(NodeNotFound)
    async def node_not_found_handler(request: Request, exc: NodeNotFound):
        return _error(404, exc)

    @app.exception_handler(ClusterUnavailable)
    async def cluster_unavailable_handler(request: Request, exc: ClusterUnavailable):
        logger.error(f"Cluster unavailable while serving {request.url.path}: {exc}")
        return _error(503, exc)

    @app.exception_handler(DatabaseError)
    async def database_error_handler(request: Request, exc: DatabaseError):
        logger.error(f"Database error while serving {request.url.path}: {exc}")
        return _error(500, exc)

    @app.exception_handler(KubeFleetError)
    async def kubefleet_error_handler(request: Request, exc: KubeFleetError):
        logger.error(f"Error while serving {request.url.path}: {exc}")
        return _error(500, exc)


def create_app(use_lifespan: bool = False) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        use_lifespan: If True, attach the lifespan handler that manages
                      database connections. Set to False for testing.

    Returns:
        A configured FastAPI application instance.
    """
    app = FastAPI(
        title="KubeFleet API",
        description="Worker-node fleet inventory synchronized with the live Kubernetes cluster.",
        version=__version__,
        docs_url="/api/v1/docs",
        openapi_url="/api/v1/openapi.json",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Register API routers
    app.include_router(workers.router, prefix="/api/v1", tags=["Workers"])
    app.include_router(config_router.router, prefix="/api/v1", tags=["Config"])

    return app


def main():
    """Entry point for the kubefleet-api console script."""
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    app = create_app(use_lifespan=True)
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
