"""Aggregate statistics computed once per graph load."""

from __future__ import annotations

from xref_engine.graph.crossref_graph import CrossRefGraph
from xref_engine.models.graph import CrossRefLinkType, CrossRefNodeType
from xref_engine.models.impact import GraphStats, MostConnectedNode


def compute_graph_stats(graph: CrossRefGraph) -> GraphStats:
    """Count nodes and links by type and find the most connected node.

    Connection counts come from each node's declared ``incoming_count`` and
    ``outgoing_count``.  Ties for the most connected node go to the node
    that appears first.
    """
    nodes = graph.nodes
    links = graph.links

    nodes_by_type = {t: 0 for t in CrossRefNodeType}
    for node in nodes:
        nodes_by_type[node.type] += 1

    links_by_type = {t: 0 for t in CrossRefLinkType}
    for link in links:
        links_by_type[link.type] += 1

    most_connected: MostConnectedNode | None = None
    total_connections = 0
    for node in nodes:
        connections = node.connection_count
        total_connections += connections
        if most_connected is None or connections > most_connected.connections:
            most_connected = MostConnectedNode(id=node.id, name=node.name, connections=connections)

    return GraphStats(
        total_nodes=len(nodes),
        nodes_by_type=nodes_by_type,
        total_links=len(links),
        links_by_type=links_by_type,
        modified_nodes=sum(1 for n in nodes if n.is_modified),
        high_impact_nodes=sum(1 for n in nodes if n.impact_severity.is_high_impact),
        avg_connections=total_connections / len(nodes) if nodes else 0.0,
        most_connected_node=most_connected,
    )
