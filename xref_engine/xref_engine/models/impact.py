"""Impact analysis and graph statistics results."""

from __future__ import annotations

from pydantic import BaseModel, Field

from xref_engine.models.graph import CrossRefLinkType, CrossRefNodeType, ImpactSeverity


class DirectImpact(BaseModel):
    """A node one hop downstream of the changed node."""

    node_id: str
    node_name: str
    impact_type: CrossRefLinkType = Field(..., description="Type of the link that carries the impact.")
    severity: ImpactSeverity
    description: str = ""


class CascadingImpact(BaseModel):
    """A node two or more hops downstream of the changed node."""

    node_id: str
    node_name: str
    path_from_source: list[str] = Field(
        default_factory=list,
        description="Names of the nodes walked from the source up to (not including) this node.",
    )
    depth: int = Field(..., ge=2, description="Hop count from the source; direct impacts are depth 1.")
    severity: ImpactSeverity
    description: str = ""


class ImpactAnalysis(BaseModel):
    """Complete impact report for a hypothetical change to one node."""

    source_node_id: str = Field(..., description="Node whose change is being analysed.")
    direct_impacts: list[DirectImpact] = Field(default_factory=list)
    cascading_impacts: list[CascadingImpact] = Field(default_factory=list)
    total_impact_score: int = Field(default=0, ge=0, le=100)
    summary: str = Field(default="", description="Human-readable impact summary.")
    recommendations: list[str] = Field(default_factory=list)

    def affected_node_ids(self) -> set[str]:
        """Every node listed as a direct or cascading impact."""
        ids = {i.node_id for i in self.direct_impacts}
        ids.update(i.node_id for i in self.cascading_impacts)
        return ids

    def highlighted_node_ids(self) -> set[str]:
        """The source plus everything it affects."""
        return {self.source_node_id} | self.affected_node_ids()


class MostConnectedNode(BaseModel):
    id: str
    name: str
    connections: int


class GraphStats(BaseModel):
    """Aggregate counts computed once per graph load."""

    total_nodes: int = 0
    nodes_by_type: dict[CrossRefNodeType, int] = Field(default_factory=dict)
    total_links: int = 0
    links_by_type: dict[CrossRefLinkType, int] = Field(default_factory=dict)
    modified_nodes: int = 0
    high_impact_nodes: int = 0
    avg_connections: float = 0.0
    most_connected_node: MostConnectedNode | None = None
