"""Tests for the timing decorator and the process-wide timing registry."""

from __future__ import annotations

import logging
import threading

import pytest

from xref_engine.graph import build_graph
from xref_engine.simulation import ImpactAnalyzer
from xref_engine.telemetry import TimingRegistry, profile_operation

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_registry():
    """Ensure a fresh registry singleton for each test."""
    TimingRegistry.reset()
    yield
    TimingRegistry.reset()


# ---------------------------------------------------------------------------
# TimingRegistry
# ---------------------------------------------------------------------------


class TestTimingRegistry:
    def test_singleton(self) -> None:
        assert TimingRegistry.get_instance() is TimingRegistry.get_instance()

    def test_reset_creates_new_instance(self) -> None:
        first = TimingRegistry.get_instance()
        TimingRegistry.reset()
        assert TimingRegistry.get_instance() is not first

    def test_summary(self) -> None:
        registry = TimingRegistry()
        for duration in (1.0, 3.0, 2.0):
            registry.record("op", duration)

        assert registry.summary("op") == {
            "operation": "op",
            "count": 3,
            "mean_ms": 2.0,
            "max_ms": 3.0,
            "last_ms": 2.0,
        }

    def test_summary_unknown_operation(self) -> None:
        assert TimingRegistry().summary("nope") is None

    def test_sample_window_is_bounded(self) -> None:
        registry = TimingRegistry(max_samples=3)
        for duration in range(10):
            registry.record("op", float(duration))

        summary = registry.summary("op")
        assert summary["count"] == 3
        assert summary["mean_ms"] == 8.0

    def test_operations_sorted(self) -> None:
        registry = TimingRegistry()
        registry.record("b", 1.0)
        registry.record("a", 1.0)
        assert registry.operations() == ["a", "b"]

    def test_concurrent_records(self) -> None:
        registry = TimingRegistry(max_samples=10_000)

        def worker() -> None:
            for _ in range(500):
                registry.record("op", 1.0)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert registry.summary("op")["count"] == 4000


# ---------------------------------------------------------------------------
# @profile_operation
# ---------------------------------------------------------------------------


class TestProfileOperation:
    def test_records_and_returns(self) -> None:
        @profile_operation("test.add")
        def add(a: int, b: int) -> int:
            return a + b

        assert add(2, 3) == 5
        assert TimingRegistry.get_instance().summary("test.add")["count"] == 1

    def test_preserves_metadata(self) -> None:
        @profile_operation("test.named")
        def named() -> None:
            """Docstring."""

        assert named.__name__ == "named"
        assert named.__doc__ == "Docstring."

    def test_records_when_function_raises(self) -> None:
        @profile_operation("test.fail")
        def fail() -> None:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            fail()
        assert TimingRegistry.get_instance().summary("test.fail")["count"] == 1

    def test_logs_at_debug(self, caplog: pytest.LogCaptureFixture) -> None:
        @profile_operation("test.logged")
        def noop() -> None:
            return None

        with caplog.at_level(logging.DEBUG, logger="xref_engine.telemetry.profiling"):
            noop()
        assert "PROFILE test.logged" in caplog.text

    def test_engine_hot_paths_are_timed(self) -> None:
        graph = build_graph([], [])
        ImpactAnalyzer(graph).analyze("missing")

        operations = TimingRegistry.get_instance().operations()
        assert "graph.build" in operations
        assert "impact.analyze" in operations
