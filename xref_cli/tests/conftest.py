"""Shared fixtures for CLI tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

FACILITY_GRAPH = Path(__file__).resolve().parents[2] / "xref_engine" / "tests" / "fixtures" / "facility_graph.json"


@pytest.fixture
def facility_graph_path() -> Path:
    return FACILITY_GRAPH


@pytest.fixture(autouse=True)
def _isolate_cli(monkeypatch: pytest.MonkeyPatch):
    """Reset CLI globals and drop the log handler each invocation installs."""
    import xref_cli.app

    monkeypatch.delenv("XREF_LOG_LEVEL", raising=False)
    monkeypatch.setattr(xref_cli.app, "_json_output", False)
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)
