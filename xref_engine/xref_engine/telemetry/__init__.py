"""Timing instrumentation for engine operations."""

from xref_engine.telemetry.profiling import TimingRegistry, profile_operation

__all__ = ["TimingRegistry", "profile_operation"]
