"""Lightweight timing for the engine's hot paths.

``@profile_operation(name)`` wraps a function with ``perf_counter_ns``
timing, logs each call at DEBUG level and keeps the most recent
durations per operation in the process-wide :class:`TimingRegistry`::

    @profile_operation("layout.step")
    def step(state, links, config):
        ...

    TimingRegistry.get_instance().summary("layout.step")
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class TimingRegistry:
    """Keeps the last ``max_samples`` durations (ms) for each operation."""

    _instance: TimingRegistry | None = None
    _instance_lock = threading.Lock()

    def __init__(self, max_samples: int = 200) -> None:
        self._max_samples = max_samples
        self._samples: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> TimingRegistry:
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = TimingRegistry()
            return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, operation: str, duration_ms: float) -> None:
        with self._lock:
            bucket = self._samples.setdefault(operation, deque(maxlen=self._max_samples))
            bucket.append(duration_ms)

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._samples)

    def summary(self, operation: str) -> dict[str, Any] | None:
        """Return ``{"operation", "count", "mean_ms", "max_ms", "last_ms"}`` or ``None``."""
        with self._lock:
            samples = list(self._samples.get(operation, ()))
        if not samples:
            return None
        return {
            "operation": operation,
            "count": len(samples),
            "mean_ms": round(sum(samples) / len(samples), 3),
            "max_ms": round(max(samples), 3),
            "last_ms": round(samples[-1], 3),
        }


def profile_operation(name: str) -> Callable[[F], F]:
    """Time every call of the decorated function under *name*."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            try:
                return func(*args, **kwargs)
            finally:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                TimingRegistry.get_instance().record(name, duration_ms)
                logger.debug("PROFILE %s: %.3f ms", name, duration_ms)

        return wrapper  # type: ignore[return-value]

    return decorator
