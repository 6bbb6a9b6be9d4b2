"""Indexed cross-reference graph built on a NetworkX multigraph.

:func:`build_graph` validates a node/link payload and indexes it in a
:class:`networkx.MultiDiGraph` keyed by node id, with one edge per link
keyed by link id.  Parallel links between the same pair of nodes (for
example a ``defines`` and a ``references`` link from one definition to
the same covenant) stay distinct edges.

Structural problems are caught here, before any layout or impact
analysis runs.  Duplicate ids always fail.  Links whose endpoints are
missing fail too unless the caller explicitly accepts a partial graph,
in which case they are quarantined rather than silently dropped.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Iterable, Iterator
from typing import NamedTuple

import networkx as nx

from xref_engine.models.graph import CrossRefLink, CrossRefNode
from xref_engine.models.view import GraphFilter
from xref_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class GraphStructureError(Exception):
    """Raised when a graph payload is structurally invalid.

    Attributes
    ----------
    issues:
        One human-readable message per problem found (duplicate ids,
        dangling link endpoints).
    """

    def __init__(self, issues: list[str]) -> None:
        self.issues = issues
        super().__init__(f"Invalid cross-reference graph: {'; '.join(issues)}")


class NodeNotFoundError(KeyError):
    """Raised when a lookup references a node id absent from the graph."""

    def __init__(self, node_id: str) -> None:
        self.node_id = node_id
        super().__init__(node_id)

    def __str__(self) -> str:
        return f"Node '{self.node_id}' not found"


class Neighbors(NamedTuple):
    incoming: list[CrossRefLink]
    outgoing: list[CrossRefLink]


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


class CrossRefGraph:
    """Read-only view over validated nodes and links.

    Construct through :func:`build_graph`.  Lookups are O(1) for nodes and
    O(degree) for incident links.
    """

    def __init__(
        self,
        index: nx.MultiDiGraph,
        nodes: list[CrossRefNode],
        links: list[CrossRefLink],
        quarantined_links: list[CrossRefLink] | None = None,
    ) -> None:
        self._index = index
        self._nodes = nodes
        self._links = links
        self._quarantined = quarantined_links or []
        self._fingerprint: str | None = None

        # networkx groups parallel edges by neighbour; these keep payload order.
        self._outgoing: dict[str, list[CrossRefLink]] = {node.id: [] for node in nodes}
        self._incoming: dict[str, list[CrossRefLink]] = {node.id: [] for node in nodes}
        for link in links:
            self._outgoing[link.source_id].append(link)
            self._incoming[link.target_id].append(link)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __iter__(self) -> Iterator[CrossRefNode]:
        return iter(self._nodes)

    @property
    def nodes(self) -> list[CrossRefNode]:
        return list(self._nodes)

    @property
    def links(self) -> list[CrossRefLink]:
        return list(self._links)

    @property
    def quarantined_links(self) -> list[CrossRefLink]:
        """Dangling links set aside by ``build_graph(..., allow_partial=True)``."""
        return list(self._quarantined)

    @property
    def fingerprint(self) -> str:
        """Content hash of the graph, for caching results per graph version."""
        if self._fingerprint is None:
            digest = hashlib.sha256()
            for node in sorted(self._nodes, key=lambda n: n.id):
                digest.update(node.model_dump_json().encode("utf-8"))
            for link in sorted(self._links, key=lambda lk: lk.id):
                digest.update(link.model_dump_json().encode("utf-8"))
            self._fingerprint = digest.hexdigest()
        return self._fingerprint

    # -- Lookups ------------------------------------------------------------

    def get_node(self, node_id: str) -> CrossRefNode | None:
        if node_id not in self._index:
            return None
        return self._index.nodes[node_id]["node"]

    def require_node(self, node_id: str) -> CrossRefNode:
        node = self.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def links_from(self, node_id: str) -> list[CrossRefLink]:
        """Outgoing links of *node_id*, in payload order."""
        if node_id not in self._outgoing:
            raise NodeNotFoundError(node_id)
        return list(self._outgoing[node_id])

    def links_to(self, node_id: str) -> list[CrossRefLink]:
        """Incoming links of *node_id*, in payload order."""
        if node_id not in self._incoming:
            raise NodeNotFoundError(node_id)
        return list(self._incoming[node_id])

    def neighbors(self, node_id: str) -> Neighbors:
        return Neighbors(incoming=self.links_to(node_id), outgoing=self.links_from(node_id))

    def connected_node_ids(self, node_id: str) -> set[str]:
        """Ids one hop away in either direction."""
        incoming, outgoing = self.neighbors(node_id)
        ids = {link.source_id for link in incoming}
        ids.update(link.target_id for link in outgoing)
        return ids

    def connected_nodes(self, node_id: str) -> list[CrossRefNode]:
        connected = self.connected_node_ids(node_id)
        return [n for n in self._nodes if n.id in connected]

    # -- Derived graphs -----------------------------------------------------

    def subgraph(self, graph_filter: GraphFilter) -> CrossRefGraph:
        """Return the visible subgraph under *graph_filter*.

        A link survives only if its type is allowed and both endpoints
        survive the node predicate.
        """
        nodes = [n for n in self._nodes if graph_filter.matches_node(n)]
        kept_ids = {n.id for n in nodes}
        links = [
            link
            for link in self._links
            if graph_filter.matches_link(link) and link.source_id in kept_ids and link.target_id in kept_ids
        ]
        logger.debug(
            "Filtered graph to %d/%d nodes and %d/%d links",
            len(nodes),
            len(self._nodes),
            len(links),
            len(self._links),
        )
        return build_graph(nodes, links)

    def to_networkx(self) -> nx.MultiDiGraph:
        """Return a copy of the underlying index graph."""
        return self._index.copy()


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


@profile_operation("graph.build")
def build_graph(
    nodes: Iterable[CrossRefNode],
    links: Iterable[CrossRefLink],
    *,
    allow_partial: bool = False,
) -> CrossRefGraph:
    """Validate and index a node/link payload.

    Parameters
    ----------
    nodes:
        Graph nodes.  Ids must be unique.
    links:
        Directed links.  Ids must be unique; parallel links are kept.
    allow_partial:
        When ``True``, links referencing unknown nodes are quarantined on
        the returned graph instead of failing the build.

    Raises
    ------
    GraphStructureError
        On duplicate node or link ids, or on dangling links when
        *allow_partial* is ``False``.
    """
    node_list = list(nodes)
    link_list = list(links)
    issues: list[str] = []

    index = nx.MultiDiGraph()
    for node in node_list:
        if node.id in index:
            issues.append(f"Duplicate node id '{node.id}'")
            continue
        index.add_node(node.id, node=node)

    kept: list[CrossRefLink] = []
    dangling: list[CrossRefLink] = []
    seen_link_ids: set[str] = set()
    for link in link_list:
        if link.id in seen_link_ids:
            issues.append(f"Duplicate link id '{link.id}'")
            continue
        seen_link_ids.add(link.id)

        missing = [end for end in (link.source_id, link.target_id) if end not in index]
        if missing:
            dangling.append(link)
            if not allow_partial:
                issues.append(f"Link '{link.id}' references missing node(s): {', '.join(sorted(set(missing)))}")
            continue

        index.add_edge(link.source_id, link.target_id, key=link.id, link=link)
        kept.append(link)

    if issues:
        raise GraphStructureError(issues)

    if dangling:
        logger.warning(
            "Quarantined %d dangling link(s): %s",
            len(dangling),
            ", ".join(link.id for link in dangling),
        )

    unique_nodes = [index.nodes[n]["node"] for n in index.nodes]
    return CrossRefGraph(index, unique_nodes, kept, dangling)


def validate_graph_hints(graph: CrossRefGraph) -> list[str]:
    """Compare the per-node hint fields against the actual links.

    ``incoming_count``, ``outgoing_count`` and ``impacted_node_ids`` are
    supplied by the extractor and not enforced.  Mismatches only affect
    sizing and spacing heuristics, so they are reported as warnings.

    Returns
    -------
    list[str]
        One warning per mismatch.  An empty list means the hints agree
        with the links.
    """
    warnings: list[str] = []

    for node in graph:
        incoming, outgoing = graph.neighbors(node.id)
        if node.incoming_count != len(incoming):
            warnings.append(
                f"Node '{node.id}' declares incoming_count={node.incoming_count} but has {len(incoming)} incoming link(s)."
            )
        if node.outgoing_count != len(outgoing):
            warnings.append(
                f"Node '{node.id}' declares outgoing_count={node.outgoing_count} but has {len(outgoing)} outgoing link(s)."
            )
        if node.impacted_node_ids:
            declared = set(node.impacted_node_ids)
            actual = {link.target_id for link in outgoing}
            if declared != actual:
                warnings.append(
                    f"Node '{node.id}' impacted_node_ids hint differs from its outgoing links "
                    f"(missing: {sorted(actual - declared)}, extra: {sorted(declared - actual)})."
                )

    return warnings
