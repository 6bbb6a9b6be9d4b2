"""Graph construction, validation, lookups and statistics."""

from xref_engine.graph.crossref_graph import (
    CrossRefGraph,
    GraphStructureError,
    Neighbors,
    NodeNotFoundError,
    build_graph,
    validate_graph_hints,
)
from xref_engine.graph.stats import compute_graph_stats

__all__ = [
    "CrossRefGraph",
    "GraphStructureError",
    "Neighbors",
    "NodeNotFoundError",
    "build_graph",
    "compute_graph_stats",
    "validate_graph_hints",
]
