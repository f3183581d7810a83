# tests/core/test_query.py

import pytest

from kubefleet.core.query import filter_nodes, paginate, query_nodes, sort_nodes
from kubefleet.models.node import EnrichedNode, NodeStatus
from kubefleet.models.query import NodeFilters, Pagination, SortOptions


@pytest.fixture
def nodes():
    return [
        EnrichedNode(name="worker-b", hostname="b.lan", ip_address="10.0.0.2", status=NodeStatus.ACTIVE, is_ready=True, cpu_cores=8),
        EnrichedNode(
            name="worker-a",
            hostname="a.lan",
            ip_address="10.0.0.1",
            cpu_architecture="arm64",
            status=NodeStatus.NOT_READY,
            is_ready=False,
            cpu_cores=4,
        ),
        EnrichedNode(
            name="gpu-1",
            hostname="gpu-1",
            ip_address="10.0.1.1",
            status=NodeStatus.MAINTENANCE,
            is_ready=True,
            is_schedulable=False,
            cpu_cores=16,
            cpu_utilization=40.0,
        ),
    ]


class TestFilter:
    def test_no_filters(self, nodes):
        assert len(filter_nodes(nodes, None)) == 3

    def test_exact_status(self, nodes):
        assert [n.name for n in filter_nodes(nodes, NodeFilters(status=NodeStatus.MAINTENANCE))] == ["gpu-1"]

    def test_flags(self, nodes):
        assert [n.name for n in filter_nodes(nodes, NodeFilters(is_ready=False))] == ["worker-a"]
        assert [n.name for n in filter_nodes(nodes, NodeFilters(is_schedulable=False))] == ["gpu-1"]

    def test_search_is_case_insensitive_substring(self, nodes):
        assert {n.name for n in filter_nodes(nodes, NodeFilters(search="WORKER"))} == {"worker-a", "worker-b"}
        assert [n.name for n in filter_nodes(nodes, NodeFilters(search="10.0.1"))] == ["gpu-1"]
        assert [n.name for n in filter_nodes(nodes, NodeFilters(search="ARM"))] == ["worker-a"]
        assert len(filter_nodes(nodes, NodeFilters(search="linux"))) == 3


class TestSort:
    def test_default_is_name_ascending(self, nodes):
        assert [n.name for n in sort_nodes(nodes, None)] == ["gpu-1", "worker-a", "worker-b"]

    def test_numeric_descending(self, nodes):
        result = sort_nodes(nodes, SortOptions(sort_by="cpu_cores", sort_order="desc"))
        assert [n.cpu_cores for n in result] == [16, 8, 4]

    def test_none_values_sort_first(self, nodes):
        result = sort_nodes(nodes, SortOptions(sort_by="cpu_utilization"))
        assert result[-1].name == "gpu-1"

    def test_status_sorts_by_value(self, nodes):
        result = sort_nodes(nodes, SortOptions(sort_by="status"))
        assert [n.status for n in result] == [NodeStatus.ACTIVE, NodeStatus.MAINTENANCE, NodeStatus.NOT_READY]

    def test_unknown_field(self, nodes):
        with pytest.raises(ValueError):
            sort_nodes(nodes, SortOptions(sort_by="labels"))
        with pytest.raises(ValueError):
            sort_nodes(nodes, SortOptions(sort_by="does_not_exist"))


class TestPaginate:
    def test_metadata(self, nodes):
        page = paginate(nodes, Pagination(page=1, limit=2))

        assert len(page.data) == 2
        info = page.pagination
        assert (info.page, info.limit, info.total, info.total_pages) == (1, 2, 3, 2)
        assert info.has_next is True
        assert info.has_prev is False

    def test_last_page(self, nodes):
        page = paginate(nodes, Pagination(page=2, limit=2))

        assert [n.name for n in page.data] == [nodes[2].name]
        assert page.pagination.has_next is False
        assert page.pagination.has_prev is True

    def test_past_the_end(self, nodes):
        assert paginate(nodes, Pagination(page=5, limit=2)).data == []

    def test_empty(self):
        info = paginate([], None).pagination
        assert (info.total, info.total_pages, info.has_next, info.has_prev) == (0, 0, False, False)


def test_query_nodes_filters_then_sorts_then_pages(nodes):
    page = query_nodes(
        nodes,
        NodeFilters(search="worker"),
        Pagination(page=1, limit=1),
        SortOptions(sort_by="name", sort_order="desc"),
    )

    assert [n.name for n in page.data] == ["worker-b"]
    assert page.pagination.total == 2
