"""Load cross-reference graph payloads from JSON documents.

The expected document shape is the extractor's output::

    {
      "documentId": "doc-1",
      "documentName": "Facility Agreement",
      "nodes": [{"id": "def-ebitda", "name": "EBITDA", ...}],
      "links": [{"id": "link-1", "sourceId": "def-ebitda", ...}]
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from xref_engine.graph.crossref_graph import CrossRefGraph, build_graph
from xref_engine.models.graph import GraphPayload

logger = logging.getLogger(__name__)


class GraphLoadError(Exception):
    """Raised when a graph document cannot be read or does not match the schema."""


def parse_graph_payload(data: dict[str, Any]) -> GraphPayload:
    """Validate an already-decoded graph document."""
    try:
        return GraphPayload.model_validate(data)
    except ValidationError as exc:
        raise GraphLoadError(f"Graph payload failed validation: {exc}") from exc


def load_graph_payload(path: Path) -> GraphPayload:
    """Read and validate the graph document at *path*."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise GraphLoadError(f"Cannot read graph file {path}: {exc}") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise GraphLoadError(f"Graph file {path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise GraphLoadError(f"Graph file {path} must contain a JSON object, got {type(data).__name__}")

    payload = parse_graph_payload(data)
    logger.info(
        "Loaded graph '%s' from %s: %d nodes, %d links",
        payload.document_name or payload.document_id,
        path,
        len(payload.nodes),
        len(payload.links),
    )
    return payload


def load_graph(path: Path, *, allow_partial: bool = False) -> CrossRefGraph:
    """Read, validate and index the graph document at *path*.

    Raises
    ------
    GraphLoadError
        If the file is unreadable or fails schema validation.
    GraphStructureError
        If the payload has duplicate ids or dangling links.
    """
    payload = load_graph_payload(path)
    return build_graph(payload.nodes, payload.links, allow_partial=allow_partial)
