# src/kubefleet/models/query.py

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .node import EnrichedNode, NodeStatus


class NodeFilters(BaseModel):
    """Exact-match flags plus a case-insensitive substring search."""

    status: Optional[NodeStatus] = None
    is_ready: Optional[bool] = None
    is_schedulable: Optional[bool] = None
    search: Optional[str] = Field(None, description="Matches name, hostname, IP, architecture or OS")


class Pagination(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=500)


class SortOptions(BaseModel):
    sort_by: str = "name"
    sort_order: Literal["asc", "desc"] = "asc"


class PageInfo(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class NodePage(BaseModel):
    data: List[EnrichedNode] = Field(default_factory=list)
    pagination: PageInfo
