# src/kubefleet/api/schemas.py
"""
Pydantic request and response schemas for the API.
Keeps API-specific shapes separate from internal domain models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from kubefleet.models.node import EnrichedNode


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str = Field(..., description="Health status of the API.")
    version: str = Field(..., description="Current application version.")


class VersionResponse(BaseModel):
    """Response schema for the version endpoint."""

    version: str = Field(..., description="Current application version.")


class ConfigResponse(BaseModel):
    """Non-sensitive configuration values."""

    db_type: str
    log_level: str
    sync_interval: str
    sync_concurrency: int
    drain_concurrency: int
    drain_grace_period_seconds: int
    default_max_pods: int
    metrics_enabled: bool
    metrics_api: str
    api_host: str
    api_port: int


class NodeListResponse(BaseModel):
    """A plain list of nodes with its size."""

    count: int = Field(..., description="Number of nodes returned.")
    data: List[EnrichedNode] = Field(default_factory=list)


class DrainRequest(BaseModel):
    """Optional body of the drain endpoint. Omitted fields fall back to the configured defaults."""

    grace_period_seconds: Optional[int] = Field(None, ge=0, description="Grace period passed to every eviction.")
    delete_local_data: bool = Field(False, description="Accept that emptyDir data is deleted with evicted pods.")


class DeleteResponse(BaseModel):
    deleted: bool
    identifier: str
