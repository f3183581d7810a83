# src/kubefleet/models/drain.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class EvictionStatus(str, Enum):
    EVICTED = "evicted"
    FAILED = "failed"


class EvictionResult(BaseModel):
    """Outcome of one pod eviction during a drain."""

    name: str = Field(..., description="Pod name")
    namespace: str = Field(..., description="Pod namespace")
    status: EvictionStatus = Field(..., description="evicted or failed")
    error: Optional[str] = Field(None, description="Failure reason, when failed")


class DrainOptions(BaseModel):
    grace_period_seconds: int = Field(30, ge=0, description="Grace period passed to every eviction")
    delete_local_data: bool = Field(False, description="Accept that emptyDir data is deleted with evicted pods")


class DrainResult(BaseModel):
    """
    Summary of a drain. Always returned, even when some evictions fail.
    """

    node: str = Field(..., description="Drained node name")
    pods_evicted: int = Field(0, description="Number of accepted evictions")
    pods_failed: int = Field(0, description="Number of failed evictions")
    eviction_results: List[EvictionResult] = Field(default_factory=list, description="Per-pod outcomes")
