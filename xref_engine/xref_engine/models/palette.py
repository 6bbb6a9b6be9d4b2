"""Colour lookups for nodes and links under the active colour scheme."""

from __future__ import annotations

from xref_engine.models.graph import CrossRefLink, CrossRefNode
from xref_engine.models.view import ColorScheme

MODIFIED_COLOR = "#f97316"
UNMODIFIED_COLOR = "#6b7280"


def node_color(node: CrossRefNode, scheme: ColorScheme = ColorScheme.TYPE) -> str:
    if scheme == ColorScheme.CATEGORY:
        return node.category.color
    if scheme == ColorScheme.IMPACT:
        return node.impact_severity.color
    if scheme == ColorScheme.MODIFICATIONS:
        return MODIFIED_COLOR if node.is_modified else UNMODIFIED_COLOR
    return node.type.color


def link_color(link: CrossRefLink) -> str:
    """Modified links are always highlighted; others take their type colour."""
    if link.is_modified:
        return MODIFIED_COLOR
    return link.type.color
