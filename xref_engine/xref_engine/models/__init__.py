"""Domain models for the cross-reference graph engine."""

from xref_engine.models.graph import (
    CrossRefCategory,
    CrossRefLink,
    CrossRefLinkType,
    CrossRefNode,
    CrossRefNodeType,
    GraphPayload,
    ImpactSeverity,
    NodeLocation,
)
from xref_engine.models.impact import (
    CascadingImpact,
    DirectImpact,
    GraphStats,
    ImpactAnalysis,
    MostConnectedNode,
)
from xref_engine.models.palette import link_color, node_color
from xref_engine.models.view import ColorScheme, GraphFilter, VisualizationSettings

__all__ = [
    "CascadingImpact",
    "ColorScheme",
    "CrossRefCategory",
    "CrossRefLink",
    "CrossRefLinkType",
    "CrossRefNode",
    "CrossRefNodeType",
    "DirectImpact",
    "GraphFilter",
    "GraphPayload",
    "GraphStats",
    "ImpactAnalysis",
    "ImpactSeverity",
    "MostConnectedNode",
    "NodeLocation",
    "VisualizationSettings",
    "link_color",
    "node_color",
]
