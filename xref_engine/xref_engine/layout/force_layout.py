"""Force-directed layout for the cross-reference graph.

The integrator is split in two:

* :func:`step` is a pure function from one :class:`LayoutState` to the
  next.  It never mutates its input, so it can be tested without any
  animation driver.
* :class:`ForceSimulator` is the frame-driven driver.  An external loop
  (a display refresh tick, a CLI ``run``) calls :meth:`ForceSimulator.step`
  once per frame; stopping the loop or calling :meth:`ForceSimulator.stop`
  cancels the run.

Each step is one O(V² + E) pass, which keeps the simulator practical for
tens to low hundreds of nodes.  Runs end after ``max_iterations`` steps;
there is no energy-based convergence check.
"""

from __future__ import annotations

import logging
import math
import random
from collections import defaultdict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from typing import NamedTuple

from xref_engine.config import ConfigurationError
from xref_engine.graph.crossref_graph import CrossRefGraph, NodeNotFoundError
from xref_engine.models.graph import CrossRefLink, CrossRefNode
from xref_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration and state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SimulationConfig:
    """Force law constants and run bounds.

    Raises :class:`~xref_engine.config.ConfigurationError` on construction
    when ``max_iterations`` is not positive or a distance/strength is
    negative.
    """

    repulsion_strength: float = 200.0
    attraction_strength: float = 0.05
    center_gravity: float = 0.01
    damping: float = 0.9
    velocity_decay: float = 0.4
    min_distance: float = 50.0
    max_iterations: int = 200
    margin: float = 50.0
    seed_jitter: float = 30.0

    def __post_init__(self) -> None:
        if self.max_iterations <= 0:
            raise ConfigurationError(f"max_iterations must be positive, got {self.max_iterations}")
        for name in (
            "repulsion_strength",
            "attraction_strength",
            "center_gravity",
            "damping",
            "velocity_decay",
            "min_distance",
            "margin",
            "seed_jitter",
        ):
            value = getattr(self, name)
            if value < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {value}")

    @property
    def repulsion_range(self) -> float:
        return self.min_distance * 3


@dataclass(frozen=True)
class PositionedNode:
    """A graph node plus its simulation state.

    The node is pinned when both ``fx`` and ``fy`` are set.
    """

    node: CrossRefNode
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    fx: float | None = None
    fy: float | None = None

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def is_pinned(self) -> bool:
        return self.fx is not None and self.fy is not None

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def velocity(self) -> tuple[float, float]:
        return (self.vx, self.vy)


class NodePosition(NamedTuple):
    """One row of a per-step position stream."""

    id: str
    x: float
    y: float
    vx: float
    vy: float
    pinned: bool


@dataclass(frozen=True)
class LayoutState:
    """Everything the integrator needs between two steps."""

    width: float
    height: float
    nodes: tuple[PositionedNode, ...] = ()
    iteration: int = 0

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)

    def by_id(self) -> dict[str, PositionedNode]:
        return {pn.id: pn for pn in self.nodes}

    def snapshot(self) -> list[NodePosition]:
        return [NodePosition(pn.id, pn.x, pn.y, pn.vx, pn.vy, pn.is_pinned) for pn in self.nodes]


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------


def seed_positions(
    nodes: Iterable[CrossRefNode],
    width: float,
    height: float,
    *,
    rng: random.Random | None = None,
    jitter: float = 30.0,
) -> list[PositionedNode]:
    """Place nodes in per-category sectors around the canvas centre.

    Categories claim equal angular sectors in first-seen order, starting
    at the top of the circle.  Nodes within a category fan out around
    the sector angle with a random radius and a bounded jitter, which
    starts the simulation close to a legible arrangement.
    """
    rng = rng or random.Random()
    center_x, center_y = width / 2, height / 2
    radius = min(width, height) * 0.35

    by_category: dict[str, list[CrossRefNode]] = {}
    for node in nodes:
        by_category.setdefault(node.category.value, []).append(node)

    positioned: list[PositionedNode] = []
    category_count = len(by_category)
    for category_index, members in enumerate(by_category.values()):
        sector_angle = (category_index / category_count) * 2 * math.pi - math.pi / 2
        sector_x = center_x + math.cos(sector_angle) * radius * 0.4
        sector_y = center_y + math.sin(sector_angle) * radius * 0.4

        for node_index, node in enumerate(members):
            angle = sector_angle + (node_index - len(members) / 2) * 0.3
            node_radius = radius * (0.3 + rng.random() * 0.2)
            positioned.append(
                PositionedNode(
                    node=node,
                    x=sector_x + math.cos(angle) * node_radius + (rng.random() - 0.5) * jitter,
                    y=sector_y + math.sin(angle) * node_radius + (rng.random() - 0.5) * jitter,
                )
            )

    return positioned


# ---------------------------------------------------------------------------
# Integrator
# ---------------------------------------------------------------------------


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@profile_operation("layout.step")
def step(state: LayoutState, links: Iterable[CrossRefLink], config: SimulationConfig) -> LayoutState:
    """Advance the layout by one frame.

    Forces are computed from the positions in *state* for every node
    before any node moves.  Links with an endpoint outside *state* are
    ignored for this step.
    """
    if not state.nodes:
        return state

    positions = {pn.id: (pn.x, pn.y) for pn in state.nodes}
    incident: dict[str, list[tuple[str, float]]] = defaultdict(list)
    for link in links:
        if link.source_id not in positions or link.target_id not in positions:
            continue
        incident[link.source_id].append((link.target_id, link.strength))
        incident[link.target_id].append((link.source_id, link.strength))

    center_x, center_y = state.center
    repulsion_range = config.repulsion_range
    factor = config.damping * config.velocity_decay
    low_x, high_x = config.margin, state.width - config.margin
    low_y, high_y = config.margin, state.height - config.margin

    moved: list[PositionedNode] = []
    for pn in state.nodes:
        if pn.is_pinned:
            moved.append(replace(pn, x=pn.fx, y=pn.fy, vx=0.0, vy=0.0))
            continue

        force_x = 0.0
        force_y = 0.0

        for other in state.nodes:
            if other.id == pn.id:
                continue
            dx = pn.x - other.x
            dy = pn.y - other.y
            dist = max(math.hypot(dx, dy), 1.0)
            if dist < repulsion_range:
                repulsion = config.repulsion_strength / (dist * dist)
                force_x += dx / dist * repulsion
                force_y += dy / dist * repulsion

        # Spring pull grows with distance; parallel links add up.
        for other_id, strength in incident.get(pn.id, ()):
            other_x, other_y = positions[other_id]
            dx = other_x - pn.x
            dy = other_y - pn.y
            dist = max(math.hypot(dx, dy), 1.0)
            attraction = dist * config.attraction_strength * strength
            force_x += dx / dist * attraction
            force_y += dy / dist * attraction

        force_x += (center_x - pn.x) * config.center_gravity
        force_y += (center_y - pn.y) * config.center_gravity

        vx = (pn.vx + force_x) * factor
        vy = (pn.vy + force_y) * factor
        moved.append(
            replace(
                pn,
                x=_clamp(pn.x + vx, low_x, high_x),
                y=_clamp(pn.y + vy, low_y, high_y),
                vx=vx,
                vy=vy,
            )
        )

    return replace(state, nodes=tuple(moved), iteration=state.iteration + 1)


# ---------------------------------------------------------------------------
# Frame-driven driver
# ---------------------------------------------------------------------------


@dataclass
class ForceSimulator:
    """Owns the layout state for one graph and advances it frame by frame.

    Parameters
    ----------
    width, height:
        Canvas dimensions.  Both must exceed twice the configured margin.
    config:
        Force constants and iteration cap.
    seed:
        Seed for the initial placement jitter; ``None`` for a random seed.
    """

    width: float = 800.0
    height: float = 600.0
    config: SimulationConfig = field(default_factory=SimulationConfig)
    seed: int | None = None

    def __post_init__(self) -> None:
        margin = self.config.margin
        if self.width <= 2 * margin or self.height <= 2 * margin:
            raise ConfigurationError(
                f"Canvas {self.width}x{self.height} leaves no room inside a {margin}px margin"
            )
        self._rng = random.Random(self.seed)
        self._state = LayoutState(width=self.width, height=self.height)
        self._links: list[CrossRefLink] = []
        self._running = False

    # -- State --------------------------------------------------------------

    @property
    def state(self) -> LayoutState:
        return self._state

    @property
    def iteration(self) -> int:
        return self._state.iteration

    @property
    def is_running(self) -> bool:
        return self._running

    def positions(self) -> dict[str, tuple[float, float]]:
        return {pn.id: pn.position for pn in self._state.nodes}

    # -- Lifecycle ----------------------------------------------------------

    def load(self, graph: CrossRefGraph, *, warm: bool = True) -> LayoutState:
        """Take the (filtered) graph as the new topology and restart the run.

        With *warm*, nodes already on the canvas keep their position,
        velocity and pin; only nodes new to the canvas are seeded.
        Without it every node is re-seeded from the category circle.
        """
        previous = self._state.by_id() if warm else {}
        fresh = [n for n in graph.nodes if n.id not in previous]
        seeded = {
            pn.id: pn
            for pn in seed_positions(
                fresh, self.width, self.height, rng=self._rng, jitter=self.config.seed_jitter
            )
        }

        nodes: list[PositionedNode] = []
        for node in graph.nodes:
            if node.id in previous:
                nodes.append(replace(previous[node.id], node=node))
            else:
                nodes.append(seeded[node.id])

        self._links = graph.links
        self._state = LayoutState(width=self.width, height=self.height, nodes=tuple(nodes))
        self._running = bool(nodes)
        logger.debug(
            "Loaded layout with %d node(s) (%d warm, %d seeded), %d link(s)",
            len(nodes),
            len(nodes) - len(seeded),
            len(seeded),
            len(self._links),
        )
        return self._state

    def restart(self) -> None:
        """Reset the iteration counter and resume from the current positions."""
        self._state = replace(self._state, iteration=0)
        self._running = bool(self._state.nodes)

    def stop(self) -> None:
        """Cancel the run; later :meth:`step` calls do nothing."""
        self._running = False

    def step(self) -> LayoutState | None:
        """Advance one frame, or return ``None`` when the run is over."""
        if not self._running:
            return None
        if not self._state.nodes or self._state.iteration >= self.config.max_iterations:
            self._running = False
            return None

        self._state = step(self._state, self._links, self.config)
        if self._state.iteration >= self.config.max_iterations:
            self._running = False
            logger.debug("Layout finished after %d iterations", self._state.iteration)
        return self._state

    def frames(self) -> Iterator[LayoutState]:
        """Yield the state after every step until the run ends."""
        while True:
            state = self.step()
            if state is None:
                return
            yield state

    def run(self, max_steps: int | None = None) -> LayoutState:
        """Step until the run ends or *max_steps* frames have been taken."""
        taken = 0
        while max_steps is None or taken < max_steps:
            if self.step() is None:
                break
            taken += 1
        return self._state

    # -- Pinning ------------------------------------------------------------

    def _update(self, node_id: str, **changes: float | None) -> PositionedNode:
        nodes = list(self._state.nodes)
        for i, pn in enumerate(nodes):
            if pn.id == node_id:
                nodes[i] = replace(pn, **changes)
                self._state = replace(self._state, nodes=tuple(nodes))
                return nodes[i]
        raise NodeNotFoundError(node_id)

    def pin(self, node_id: str) -> PositionedNode:
        """Fix a node at its current position."""
        current = self._state.by_id().get(node_id)
        if current is None:
            raise NodeNotFoundError(node_id)
        return self._update(node_id, fx=current.x, fy=current.y)

    def unpin(self, node_id: str) -> PositionedNode:
        return self._update(node_id, fx=None, fy=None)

    def toggle_pin(self, node_id: str) -> PositionedNode:
        current = self._state.by_id().get(node_id)
        if current is None:
            raise NodeNotFoundError(node_id)
        if current.fx is not None:
            return self.unpin(node_id)
        return self.pin(node_id)

    def move_node(self, node_id: str, x: float, y: float) -> PositionedNode:
        """Drag a node to ``(x, y)``; the node stays pinned there."""
        return self._update(node_id, x=x, y=y, fx=x, fy=y)
