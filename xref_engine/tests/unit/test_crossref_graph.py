"""Tests for graph construction, lookups, filtering and hint validation."""

from __future__ import annotations

import logging

import networkx as nx
import pytest

from xref_engine.graph import (
    CrossRefGraph,
    GraphStructureError,
    NodeNotFoundError,
    build_graph,
    validate_graph_hints,
)
from xref_engine.models import (
    CrossRefCategory,
    CrossRefLink,
    CrossRefLinkType,
    CrossRefNode,
    CrossRefNodeType,
    GraphFilter,
    ImpactSeverity,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _node(
    node_id: str,
    *,
    name: str | None = None,
    node_type: CrossRefNodeType = CrossRefNodeType.CLAUSE,
    category: CrossRefCategory = CrossRefCategory.MISCELLANEOUS,
    severity: ImpactSeverity = ImpactSeverity.LOW,
    modified: bool = False,
    incoming: int = 0,
    outgoing: int = 0,
) -> CrossRefNode:
    return CrossRefNode(
        id=node_id,
        name=name or node_id,
        type=node_type,
        category=category,
        impact_severity=severity,
        is_modified=modified,
        incoming_count=incoming,
        outgoing_count=outgoing,
    )


def _link(
    link_id: str,
    source: str,
    target: str,
    link_type: CrossRefLinkType = CrossRefLinkType.REFERENCES,
) -> CrossRefLink:
    return CrossRefLink(id=link_id, source_id=source, target_id=target, type=link_type)


# ---------------------------------------------------------------------------
# build_graph
# ---------------------------------------------------------------------------


class TestBuildGraph:
    def test_empty_graph(self) -> None:
        graph = build_graph([], [])
        assert len(graph) == 0
        assert graph.links == []

    def test_nodes_and_links_indexed(self) -> None:
        graph = build_graph([_node("a"), _node("b")], [_link("l1", "a", "b")])

        assert len(graph) == 2
        assert "a" in graph
        assert "zzz" not in graph
        assert [n.id for n in graph] == ["a", "b"]
        assert [lk.id for lk in graph.links] == ["l1"]

    def test_duplicate_node_id_rejected(self) -> None:
        with pytest.raises(GraphStructureError) as exc_info:
            build_graph([_node("a"), _node("a")], [])
        assert exc_info.value.issues == ["Duplicate node id 'a'"]

    def test_duplicate_link_id_rejected(self) -> None:
        with pytest.raises(GraphStructureError, match="Duplicate link id 'l1'"):
            build_graph([_node("a"), _node("b")], [_link("l1", "a", "b"), _link("l1", "b", "a")])

    def test_dangling_link_rejected(self) -> None:
        with pytest.raises(GraphStructureError) as exc_info:
            build_graph([_node("a")], [_link("l1", "a", "ghost")])
        assert "ghost" in exc_info.value.issues[0]

    def test_all_issues_reported_together(self) -> None:
        with pytest.raises(GraphStructureError) as exc_info:
            build_graph(
                [_node("a"), _node("a")],
                [_link("l1", "a", "x"), _link("l2", "y", "a")],
            )
        assert len(exc_info.value.issues) == 3

    def test_allow_partial_quarantines_dangling(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="xref_engine.graph.crossref_graph"):
            graph = build_graph(
                [_node("a"), _node("b")],
                [_link("l1", "a", "b"), _link("l2", "a", "ghost")],
                allow_partial=True,
            )

        assert [lk.id for lk in graph.links] == ["l1"]
        assert [lk.id for lk in graph.quarantined_links] == ["l2"]
        assert "Quarantined 1 dangling link(s): l2" in caplog.text

    def test_allow_partial_still_rejects_duplicates(self) -> None:
        with pytest.raises(GraphStructureError):
            build_graph([_node("a"), _node("a")], [], allow_partial=True)

    def test_parallel_links_kept(self) -> None:
        graph = build_graph(
            [_node("a"), _node("b")],
            [
                _link("l1", "a", "b", CrossRefLinkType.DEFINES),
                _link("l2", "a", "b", CrossRefLinkType.CONSTRAINS),
            ],
        )
        assert [lk.id for lk in graph.links_from("a")] == ["l1", "l2"]

    def test_interleaved_parallel_links_keep_payload_order(self) -> None:
        graph = build_graph(
            [_node("a"), _node("b"), _node("c")],
            [_link("l1", "a", "b"), _link("l2", "a", "c"), _link("l3", "a", "b"), _link("l4", "c", "b")],
        )
        assert [lk.id for lk in graph.links_from("a")] == ["l1", "l2", "l3"]
        assert [lk.id for lk in graph.links_to("b")] == ["l1", "l3", "l4"]


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


class TestLookups:
    @pytest.fixture
    def graph(self) -> CrossRefGraph:
        return build_graph(
            [_node("a"), _node("b"), _node("c"), _node("lonely")],
            [_link("l1", "a", "b"), _link("l2", "b", "c"), _link("l3", "c", "a"), _link("l4", "a", "c")],
        )

    def test_get_node(self, graph: CrossRefGraph) -> None:
        assert graph.get_node("a").id == "a"
        assert graph.get_node("missing") is None

    def test_require_node_raises(self, graph: CrossRefGraph) -> None:
        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.require_node("missing")
        assert exc_info.value.node_id == "missing"
        assert str(exc_info.value) == "Node 'missing' not found"

    def test_node_not_found_is_key_error(self) -> None:
        assert issubclass(NodeNotFoundError, KeyError)

    def test_links_from_and_to(self, graph: CrossRefGraph) -> None:
        assert {lk.id for lk in graph.links_from("a")} == {"l1", "l4"}
        assert {lk.id for lk in graph.links_to("a")} == {"l3"}
        assert graph.links_from("lonely") == []

    def test_links_for_unknown_node_raise(self, graph: CrossRefGraph) -> None:
        with pytest.raises(NodeNotFoundError):
            graph.links_from("missing")
        with pytest.raises(NodeNotFoundError):
            graph.links_to("missing")

    def test_neighbors(self, graph: CrossRefGraph) -> None:
        incoming, outgoing = graph.neighbors("c")
        assert {lk.id for lk in incoming} == {"l2", "l4"}
        assert {lk.id for lk in outgoing} == {"l3"}

    def test_connected_node_ids(self, graph: CrossRefGraph) -> None:
        assert graph.connected_node_ids("a") == {"b", "c"}
        assert graph.connected_node_ids("lonely") == set()

    def test_connected_nodes_in_graph_order(self, graph: CrossRefGraph) -> None:
        assert [n.id for n in graph.connected_nodes("b")] == ["a", "c"]

    def test_to_networkx_is_a_copy(self, graph: CrossRefGraph) -> None:
        copy = graph.to_networkx()
        assert isinstance(copy, nx.MultiDiGraph)
        assert copy.number_of_edges() == 4

        copy.remove_node("a")
        assert "a" in graph


# ---------------------------------------------------------------------------
# Fingerprint
# ---------------------------------------------------------------------------


class TestFingerprint:
    def test_independent_of_payload_order(self) -> None:
        first = build_graph([_node("a"), _node("b")], [_link("l1", "a", "b"), _link("l2", "b", "a")])
        second = build_graph([_node("b"), _node("a")], [_link("l2", "b", "a"), _link("l1", "a", "b")])
        assert first.fingerprint == second.fingerprint

    def test_changes_with_content(self) -> None:
        before = build_graph([_node("a", severity=ImpactSeverity.LOW)], [])
        after = build_graph([_node("a", severity=ImpactSeverity.HIGH)], [])
        assert before.fingerprint != after.fingerprint


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestSubgraph:
    @pytest.fixture
    def graph(self) -> CrossRefGraph:
        return build_graph(
            [
                _node("def", name="EBITDA", node_type=CrossRefNodeType.DEFINITION, modified=True, outgoing=2),
                _node(
                    "cov",
                    name="Leverage Ratio",
                    node_type=CrossRefNodeType.COVENANT,
                    category=CrossRefCategory.COVENANTS,
                    severity=ImpactSeverity.CRITICAL,
                    incoming=1,
                    outgoing=1,
                ),
                _node("fee", name="Commitment Fee", node_type=CrossRefNodeType.PRICING, incoming=2),
            ],
            [
                _link("l1", "def", "cov", CrossRefLinkType.DEFINES),
                _link("l2", "def", "fee", CrossRefLinkType.REFERENCES),
                _link("l3", "cov", "fee", CrossRefLinkType.DEPENDS_ON),
            ],
        )

    def test_default_filter_keeps_everything(self, graph: CrossRefGraph) -> None:
        visible = graph.subgraph(GraphFilter())
        assert len(visible) == 3
        assert len(visible.links) == 3

    def test_link_dropped_with_endpoint(self, graph: CrossRefGraph) -> None:
        kept_types = frozenset({CrossRefNodeType.DEFINITION, CrossRefNodeType.PRICING})
        visible = graph.subgraph(GraphFilter(node_types=kept_types))
        assert {n.id for n in visible} == {"def", "fee"}
        assert [lk.id for lk in visible.links] == ["l2"]

    def test_link_type_filter(self, graph: CrossRefGraph) -> None:
        visible = graph.subgraph(GraphFilter(link_types=frozenset({CrossRefLinkType.DEFINES})))
        assert len(visible) == 3
        assert [lk.id for lk in visible.links] == ["l1"]

    def test_only_modified(self, graph: CrossRefGraph) -> None:
        assert [n.id for n in graph.subgraph(GraphFilter(show_only_modified=True))] == ["def"]

    def test_only_high_impact(self, graph: CrossRefGraph) -> None:
        assert [n.id for n in graph.subgraph(GraphFilter(show_only_high_impact=True))] == ["cov"]

    def test_category_filter(self, graph: CrossRefGraph) -> None:
        visible = graph.subgraph(GraphFilter(categories=frozenset({CrossRefCategory.MISCELLANEOUS})))
        assert {n.id for n in visible} == {"def", "fee"}

    def test_min_connections(self, graph: CrossRefGraph) -> None:
        visible = graph.subgraph(GraphFilter(min_connections=2))
        assert {n.id for n in visible} == {"def", "cov", "fee"}
        visible = graph.subgraph(GraphFilter(min_connections=3))
        assert len(visible) == 0

    def test_search_is_case_insensitive(self, graph: CrossRefGraph) -> None:
        assert [n.id for n in graph.subgraph(GraphFilter(search_query="ratio"))] == ["cov"]

    def test_subgraph_leaves_source_untouched(self, graph: CrossRefGraph) -> None:
        graph.subgraph(GraphFilter(show_only_modified=True))
        assert len(graph) == 3


# ---------------------------------------------------------------------------
# Hint validation
# ---------------------------------------------------------------------------


class TestValidateGraphHints:
    def test_consistent_hints(self, facility_graph: CrossRefGraph) -> None:
        assert validate_graph_hints(facility_graph) == []

    def test_count_mismatch_reported(self) -> None:
        graph = build_graph([_node("a", outgoing=3), _node("b", incoming=1)], [_link("l1", "a", "b")])
        warnings = validate_graph_hints(graph)

        assert len(warnings) == 1
        assert "outgoing_count=3" in warnings[0]

    def test_impacted_ids_mismatch_reported(self) -> None:
        source = CrossRefNode(
            id="a",
            name="a",
            type=CrossRefNodeType.DEFINITION,
            category=CrossRefCategory.DEFINITIONS,
            outgoing_count=1,
            impacted_node_ids=("c",),
        )
        graph = build_graph([source, _node("b", incoming=1), _node("c")], [_link("l1", "a", "b")])
        warnings = validate_graph_hints(graph)

        assert len(warnings) == 1
        assert "missing: ['b']" in warnings[0]
        assert "extra: ['c']" in warnings[0]
