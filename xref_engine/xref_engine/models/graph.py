"""Node, link and payload schema for the contract cross-reference graph.

Payloads arrive from the extraction subsystem with camelCase keys
(``sourceId``, ``impactSeverity``); every model here accepts either the
camelCase alias or the snake_case field name.  Nodes and links are frozen
so that a graph cannot change underneath a running layout or analysis.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CrossRefNodeType(str, Enum):
    """Kind of contract term a node represents."""

    DEFINITION = "definition"
    CLAUSE = "clause"
    COVENANT = "covenant"
    PRICING = "pricing"
    REPRESENTATION = "representation"
    CONDITION = "condition"
    EVENT = "event"

    @property
    def label(self) -> str:
        return _NODE_TYPE_LABELS[self]

    @property
    def color(self) -> str:
        return _NODE_TYPE_COLORS[self]


class CrossRefCategory(str, Enum):
    """Visual grouping used for colouring and initial layout sectors."""

    DEFINITIONS = "definitions"
    FINANCIAL_TERMS = "financial_terms"
    COVENANTS = "covenants"
    CONDITIONS = "conditions"
    REPRESENTATIONS = "representations"
    EVENTS_DEFAULT = "events_default"
    MISCELLANEOUS = "miscellaneous"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]

    @property
    def color(self) -> str:
        return _CATEGORY_COLORS[self]


class CrossRefLinkType(str, Enum):
    """Relationship carried by a directed link."""

    DEFINES = "defines"
    REFERENCES = "references"
    DEPENDS_ON = "depends_on"
    TRIGGERS = "triggers"
    CONSTRAINS = "constrains"
    MODIFIES = "modifies"

    @property
    def label(self) -> str:
        return _LINK_TYPE_LABELS[self]

    @property
    def color(self) -> str:
        return _LINK_TYPE_COLORS[self]


class ImpactSeverity(str, Enum):
    """How badly a term is affected when something upstream changes.

    Each member carries its score weight, display colour and label from
    the static tables below, so every severity is guaranteed a value.
    """

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def points(self) -> int:
        return _SEVERITY_POINTS[self]

    @property
    def color(self) -> str:
        return _SEVERITY_COLORS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @property
    def is_high_impact(self) -> bool:
        return self in (ImpactSeverity.HIGH, ImpactSeverity.CRITICAL)


# ---------------------------------------------------------------------------
# Static lookup tables
# ---------------------------------------------------------------------------

_SEVERITY_POINTS: dict[ImpactSeverity, int] = {
    ImpactSeverity.NONE: 0,
    ImpactSeverity.LOW: 10,
    ImpactSeverity.MEDIUM: 25,
    ImpactSeverity.HIGH: 50,
    ImpactSeverity.CRITICAL: 100,
}

_SEVERITY_COLORS: dict[ImpactSeverity, str] = {
    ImpactSeverity.NONE: "#6b7280",
    ImpactSeverity.LOW: "#22c55e",
    ImpactSeverity.MEDIUM: "#eab308",
    ImpactSeverity.HIGH: "#f97316",
    ImpactSeverity.CRITICAL: "#ef4444",
}

_NODE_TYPE_COLORS: dict[CrossRefNodeType, str] = {
    CrossRefNodeType.DEFINITION: "#8b5cf6",
    CrossRefNodeType.CLAUSE: "#3b82f6",
    CrossRefNodeType.COVENANT: "#f97316",
    CrossRefNodeType.PRICING: "#22c55e",
    CrossRefNodeType.REPRESENTATION: "#ec4899",
    CrossRefNodeType.CONDITION: "#06b6d4",
    CrossRefNodeType.EVENT: "#ef4444",
}

_NODE_TYPE_LABELS: dict[CrossRefNodeType, str] = {
    CrossRefNodeType.DEFINITION: "Definition",
    CrossRefNodeType.CLAUSE: "Clause",
    CrossRefNodeType.COVENANT: "Covenant",
    CrossRefNodeType.PRICING: "Pricing",
    CrossRefNodeType.REPRESENTATION: "Representation",
    CrossRefNodeType.CONDITION: "Condition",
    CrossRefNodeType.EVENT: "Event",
}

_CATEGORY_COLORS: dict[CrossRefCategory, str] = {
    CrossRefCategory.DEFINITIONS: "#8b5cf6",
    CrossRefCategory.FINANCIAL_TERMS: "#22c55e",
    CrossRefCategory.COVENANTS: "#f97316",
    CrossRefCategory.CONDITIONS: "#06b6d4",
    CrossRefCategory.REPRESENTATIONS: "#ec4899",
    CrossRefCategory.EVENTS_DEFAULT: "#ef4444",
    CrossRefCategory.MISCELLANEOUS: "#6b7280",
}

_CATEGORY_LABELS: dict[CrossRefCategory, str] = {
    CrossRefCategory.DEFINITIONS: "Definitions",
    CrossRefCategory.FINANCIAL_TERMS: "Financial Terms",
    CrossRefCategory.COVENANTS: "Covenants",
    CrossRefCategory.CONDITIONS: "Conditions Precedent",
    CrossRefCategory.REPRESENTATIONS: "Representations & Warranties",
    CrossRefCategory.EVENTS_DEFAULT: "Events of Default",
    CrossRefCategory.MISCELLANEOUS: "Miscellaneous",
}

_LINK_TYPE_COLORS: dict[CrossRefLinkType, str] = {
    CrossRefLinkType.DEFINES: "#8b5cf6",
    CrossRefLinkType.REFERENCES: "#6b7280",
    CrossRefLinkType.DEPENDS_ON: "#3b82f6",
    CrossRefLinkType.TRIGGERS: "#f97316",
    CrossRefLinkType.CONSTRAINS: "#ef4444",
    CrossRefLinkType.MODIFIES: "#22c55e",
}

_LINK_TYPE_LABELS: dict[CrossRefLinkType, str] = {
    CrossRefLinkType.DEFINES: "Defines",
    CrossRefLinkType.REFERENCES: "References",
    CrossRefLinkType.DEPENDS_ON: "Depends On",
    CrossRefLinkType.TRIGGERS: "Triggers",
    CrossRefLinkType.CONSTRAINS: "Constrains",
    CrossRefLinkType.MODIFIES: "Modifies",
}


# ---------------------------------------------------------------------------
# Graph records
# ---------------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class NodeLocation(_CamelModel):
    """Where a term sits in the source document."""

    section: str | None = None
    page: int | None = None
    clause_ref: str | None = None


class CrossRefNode(_CamelModel):
    """A contract term in the cross-reference graph.

    ``incoming_count`` and ``outgoing_count`` mirror the number of links
    targeting / originating at this node.  They drive sizing heuristics
    only and are not enforced; see
    :func:`xref_engine.graph.validate_graph_hints`.

    ``impacted_node_ids`` is a first-degree hint from the extractor.  The
    impact analyzer never trusts it and always walks the links.
    """

    id: str = Field(..., min_length=1, description="Unique node identifier.")
    name: str = Field(..., description="Display name, e.g. 'EBITDA'.")
    type: CrossRefNodeType
    category: CrossRefCategory
    content: str = Field(default="", description="Full text or value of the term.")
    location: NodeLocation = Field(default_factory=NodeLocation)
    current_value: str | None = None
    previous_value: str | None = None
    is_modified: bool = False
    incoming_count: int = Field(default=0, ge=0)
    outgoing_count: int = Field(default=0, ge=0)
    impact_severity: ImpactSeverity = ImpactSeverity.NONE
    impacted_node_ids: tuple[str, ...] = ()

    @property
    def connection_count(self) -> int:
        return self.incoming_count + self.outgoing_count


class CrossRefLink(_CamelModel):
    """A typed, directed, weighted relationship between two nodes."""

    id: str = Field(..., min_length=1, description="Unique link identifier.")
    source_id: str
    target_id: str
    type: CrossRefLinkType
    strength: float = Field(default=1.0, ge=0.0, le=1.0)
    description: str = ""
    is_modified: bool = False


class GraphPayload(_CamelModel):
    """A complete graph document as produced by the extraction subsystem."""

    document_id: str = ""
    document_name: str = ""
    comparison_document_id: str | None = None
    comparison_document_name: str | None = None
    nodes: list[CrossRefNode] = Field(default_factory=list)
    links: list[CrossRefLink] = Field(default_factory=list)
    generated_at: str | None = None
