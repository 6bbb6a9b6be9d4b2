"""Force-directed 2D layout."""

from xref_engine.layout.force_layout import (
    ForceSimulator,
    LayoutState,
    NodePosition,
    PositionedNode,
    SimulationConfig,
    seed_positions,
    step,
)

__all__ = [
    "ForceSimulator",
    "LayoutState",
    "NodePosition",
    "PositionedNode",
    "SimulationConfig",
    "seed_positions",
    "step",
]
