"""What-if impact propagation and ripple replay.

All analysis is read-only; the ripple replay only schedules results the
analyzer already produced.
"""

from __future__ import annotations

from xref_engine.simulation.impact_analyzer import (
    CascadeItem,
    ImpactAnalyzer,
    recommendations_for,
    score_impacts,
    trace_cascade,
)
from xref_engine.simulation.ripple import (
    RippleAnimation,
    RippleEvent,
    RippleTick,
    schedule_ripple,
)

__all__ = [
    "CascadeItem",
    "ImpactAnalyzer",
    "RippleAnimation",
    "RippleEvent",
    "RippleTick",
    "recommendations_for",
    "schedule_ripple",
    "score_impacts",
    "trace_cascade",
]
