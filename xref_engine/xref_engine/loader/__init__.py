"""Graph document loading."""

from xref_engine.loader.graph_loader import (
    GraphLoadError,
    load_graph,
    load_graph_payload,
    parse_graph_payload,
)

__all__ = [
    "GraphLoadError",
    "load_graph",
    "load_graph_payload",
    "parse_graph_payload",
]
