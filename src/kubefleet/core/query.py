# src/kubefleet/core/query.py
"""
In-memory filtering, search, sorting and pagination over a reconciled node list.
"""

import math
from typing import List, Optional

from kubefleet.models.node import EnrichedNode
from kubefleet.models.query import NodeFilters, NodePage, PageInfo, Pagination, SortOptions

SEARCH_FIELDS = ("name", "hostname", "ip_address", "cpu_architecture", "operating_system")

# Fields whose values compare meaningfully; dict and list fields are excluded.
SORTABLE_FIELDS = tuple(
    name
    for name in EnrichedNode.model_fields
    if name not in ("labels", "taints", "conditions", "capacity", "allocatable", "addresses", "node_info")
)


def filter_nodes(nodes: List[EnrichedNode], filters: Optional[NodeFilters]) -> List[EnrichedNode]:
    if filters is None:
        return list(nodes)

    result = []
    needle = filters.search.lower() if filters.search else None
    for node in nodes:
        if filters.status is not None and node.status != filters.status:
            continue
        if filters.is_ready is not None and node.is_ready != filters.is_ready:
            continue
        if filters.is_schedulable is not None and node.is_schedulable != filters.is_schedulable:
            continue
        if needle and not any(needle in (getattr(node, f) or "").lower() for f in SEARCH_FIELDS):
            continue
        result.append(node)
    return result


def _sort_key(field: str):
    def key(node: EnrichedNode):
        value = getattr(node, field)
        # None sorts first, and never gets compared against a real value.
        if value is None:
            return (0, "")
        if hasattr(value, "value"):
            value = value.value
        return (1, value)

    return key


def sort_nodes(nodes: List[EnrichedNode], sort: Optional[SortOptions]) -> List[EnrichedNode]:
    """
    Raises:
        ValueError: if ``sort_by`` is not a sortable node field.
    """
    sort = sort or SortOptions()
    if sort.sort_by not in SORTABLE_FIELDS:
        raise ValueError(f"Cannot sort by '{sort.sort_by}'. Valid fields: {', '.join(SORTABLE_FIELDS)}")
    return sorted(nodes, key=_sort_key(sort.sort_by), reverse=sort.sort_order == "desc")


def paginate(nodes: List[EnrichedNode], pagination: Optional[Pagination]) -> NodePage:
    pagination = pagination or Pagination()
    total = len(nodes)
    total_pages = math.ceil(total / pagination.limit) if total else 0
    start = (pagination.page - 1) * pagination.limit

    return NodePage(
        data=nodes[start : start + pagination.limit],
        pagination=PageInfo(
            page=pagination.page,
            limit=pagination.limit,
            total=total,
            total_pages=total_pages,
            has_next=pagination.page < total_pages,
            has_prev=pagination.page > 1,
        ),
    )


def query_nodes(
    nodes: List[EnrichedNode],
    filters: Optional[NodeFilters] = None,
    pagination: Optional[Pagination] = None,
    sort: Optional[SortOptions] = None,
) -> NodePage:
    return paginate(sort_nodes(filter_nodes(nodes, filters), sort), pagination)
