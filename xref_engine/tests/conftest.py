"""Shared fixtures for the engine test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from xref_engine.graph import CrossRefGraph
from xref_engine.loader import load_graph

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def facility_graph_path() -> Path:
    return FIXTURES_DIR / "facility_graph.json"


@pytest.fixture
def facility_graph(facility_graph_path: Path) -> CrossRefGraph:
    """A 12-node facility agreement graph with consistent count hints."""
    return load_graph(facility_graph_path)
