"""Filter and visualisation settings supplied by the presentation layer."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from xref_engine.models.graph import (
    CrossRefCategory,
    CrossRefLink,
    CrossRefLinkType,
    CrossRefNode,
    CrossRefNodeType,
)


class ColorScheme(str, Enum):
    """Which node attribute drives node colour."""

    TYPE = "type"
    CATEGORY = "category"
    IMPACT = "impact"
    MODIFICATIONS = "modifications"


class GraphFilter(BaseModel):
    """Predicate selecting the visible subgraph.

    The defaults keep every node and link.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    node_types: frozenset[CrossRefNodeType] = frozenset(CrossRefNodeType)
    categories: frozenset[CrossRefCategory] = frozenset(CrossRefCategory)
    link_types: frozenset[CrossRefLinkType] = frozenset(CrossRefLinkType)
    min_connections: int = Field(default=0, ge=0)
    show_only_modified: bool = False
    show_only_high_impact: bool = False
    search_query: str = ""

    def matches_node(self, node: CrossRefNode) -> bool:
        if self.show_only_modified and not node.is_modified:
            return False
        if self.show_only_high_impact and not node.impact_severity.is_high_impact:
            return False
        if node.type not in self.node_types:
            return False
        if node.category not in self.categories:
            return False
        if node.connection_count < self.min_connections:
            return False
        if self.search_query and self.search_query.lower() not in node.name.lower():
            return False
        return True

    def matches_link(self, link: CrossRefLink) -> bool:
        return link.type in self.link_types


class VisualizationSettings(BaseModel):
    """Display toggles.  These gate whether engine parts run, not how."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    show_labels: bool = True
    show_link_labels: bool = False
    enable_physics: bool = True
    animation_speed: float = Field(default=0.5, ge=0.0, le=1.0)
    zoom_level: float = Field(default=1.0, gt=0.0)
    node_spacing: int = Field(default=100, ge=0)
    color_scheme: ColorScheme = ColorScheme.TYPE
    show_ripple_effects: bool = True
    cluster_by_category: bool = False
