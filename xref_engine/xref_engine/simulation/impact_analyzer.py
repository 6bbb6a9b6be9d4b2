"""What-if impact propagation over the cross-reference graph.

Answers "if this term changes, what else is affected, how badly, and
through which chain of references?":

1. **Direct impacts**: one entry per outgoing link of the changed node.
   Severity is the target node's declared ``impact_severity``.
2. **Cascading impacts**: breadth-first walk from the direct targets
   along outgoing links, bounded by a depth cap.  A single visited set
   (seeded with the source and every direct target) guarantees that each
   node is reported at most once and that cycles end the walk.
3. **Score**: severity points, with cascading impacts discounted by their
   hop count, normalised into ``[0, 100]``.

All analysis is read-only and keeps no state between calls.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from collections.abc import Iterable
from typing import NamedTuple

from xref_engine.config import ConfigurationError
from xref_engine.graph.crossref_graph import CrossRefGraph
from xref_engine.models.impact import CascadingImpact, DirectImpact, ImpactAnalysis
from xref_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


_DEFAULT_MAX_DEPTH: int = 3
_DEFAULT_SCORE_DIVISOR: float = 3.0

NOT_FOUND_SUMMARY = "Node not found"

# Checked from the highest threshold down; the first match wins.
_RECOMMENDATION_TIERS: tuple[tuple[float, tuple[str, ...]], ...] = (
    (
        75,
        (
            "Consider obtaining legal review before modifying this term",
            "Update all dependent financial models",
            "Notify relevant stakeholders of potential cascading effects",
        ),
    ),
    (
        50,
        (
            "Review impacted covenants and update calculations",
            "Verify pricing grid reflects any changes",
        ),
    ),
    (
        25,
        ("Minor updates may be needed to downstream references",),
    ),
)


class CascadeItem(NamedTuple):
    """A queued node in the cascade walk."""

    node_id: str
    path: tuple[str, ...]
    depth: int


# ---------------------------------------------------------------------------
# Traversal and scoring
# ---------------------------------------------------------------------------


def trace_cascade(
    graph: CrossRefGraph,
    seeds: Iterable[CascadeItem],
    visited: set[str],
    max_depth: int,
) -> list[CascadingImpact]:
    """Breadth-first walk downstream of *seeds*.

    Parameters
    ----------
    graph:
        The (filtered) graph to walk.
    seeds:
        Starting items, normally the direct targets at depth 1 with the
        source name as their path.
    visited:
        Node ids that must not be reported.  Updated in place with every
        node the walk records.
    max_depth:
        Deepest hop count that may be recorded.  Nodes at this depth are
        reported but not expanded.

    Returns
    -------
    list[CascadingImpact]
        Newly reached nodes in BFS order, each with ``depth >= 2``.
    """
    impacts: list[CascadingImpact] = []
    queue: deque[CascadeItem] = deque(seeds)

    while queue:
        current = queue.popleft()
        if current.depth >= max_depth:
            continue
        current_node = graph.get_node(current.node_id)
        if current_node is None:
            continue

        path = (*current.path, current_node.name)
        child_depth = current.depth + 1
        for link in graph.links_from(current.node_id):
            if link.target_id in visited:
                continue
            visited.add(link.target_id)
            target = graph.require_node(link.target_id)
            impacts.append(
                CascadingImpact(
                    node_id=target.id,
                    node_name=target.name,
                    path_from_source=list(path),
                    depth=child_depth,
                    severity=target.impact_severity,
                    description=f"{link.description} (via {' -> '.join(path)})",
                )
            )
            if child_depth < max_depth:
                queue.append(CascadeItem(target.id, path, child_depth))

    return impacts


def score_impacts(
    direct: Iterable[DirectImpact],
    cascading: Iterable[CascadingImpact],
    divisor: float = _DEFAULT_SCORE_DIVISOR,
) -> float:
    """Return the unrounded impact score in ``[0, 100]``.

    Direct impacts count their full severity points; cascading impacts
    count ``points / depth``.  The sum is divided by *divisor*, a fixed
    normalisation constant independent of graph size, and capped at 100.
    """
    direct_score = sum(i.severity.points for i in direct)
    cascading_score = sum(i.severity.points / i.depth for i in cascading)
    return min(100.0, (direct_score + cascading_score) / divisor)


def recommendations_for(score: float) -> list[str]:
    for threshold, items in _RECOMMENDATION_TIERS:
        if score > threshold:
            return list(items)
    return []


# ---------------------------------------------------------------------------
# Impact analyzer
# ---------------------------------------------------------------------------


class ImpactAnalyzer:
    """Analyse the downstream impact of changing a node.

    Stateless between calls, so one analyzer may serve concurrent callers
    as long as the graph is not mutated underneath it.

    Parameters
    ----------
    graph:
        The validated (and usually filtered) cross-reference graph.
    max_depth:
        Deepest cascade hop recorded; direct impacts are depth 1.
    score_divisor:
        Normalisation constant for the total score.

    Raises
    ------
    ConfigurationError
        If ``max_depth < 1`` or ``score_divisor <= 0``.
    """

    def __init__(
        self,
        graph: CrossRefGraph,
        *,
        max_depth: int = _DEFAULT_MAX_DEPTH,
        score_divisor: float = _DEFAULT_SCORE_DIVISOR,
    ) -> None:
        if max_depth < 1:
            raise ConfigurationError(f"max_depth must be at least 1, got {max_depth}")
        if score_divisor <= 0:
            raise ConfigurationError(f"score_divisor must be positive, got {score_divisor}")
        self._graph = graph
        self._max_depth = max_depth
        self._score_divisor = score_divisor

    @property
    def max_depth(self) -> int:
        return self._max_depth

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @profile_operation("impact.analyze")
    def analyze(self, source_node_id: str) -> ImpactAnalysis:
        """Compute the impact report for a change to *source_node_id*.

        An unknown id is an expected condition (for example a selection
        that a filter change has hidden) and yields an empty report whose
        summary is ``"Node not found"``.
        """
        source = self._graph.get_node(source_node_id)
        if source is None:
            logger.debug("Impact query for unknown node '%s'", source_node_id)
            return ImpactAnalysis(source_node_id=source_node_id, summary=NOT_FOUND_SUMMARY)

        direct: list[DirectImpact] = []
        seeds: list[CascadeItem] = []
        visited: set[str] = {source.id}
        for link in self._graph.links_from(source.id):
            target = self._graph.require_node(link.target_id)
            direct.append(
                DirectImpact(
                    node_id=target.id,
                    node_name=target.name,
                    impact_type=link.type,
                    severity=target.impact_severity,
                    description=link.description,
                )
            )
            # The source is pre-visited, so a self-loop never seeds a cascade.
            if target.id not in visited:
                visited.add(target.id)
                seeds.append(CascadeItem(target.id, (source.name,), 1))

        cascading = trace_cascade(self._graph, seeds, visited, self._max_depth)

        raw_score = score_impacts(direct, cascading, self._score_divisor)
        total_score = int(math.floor(raw_score + 0.5))

        logger.debug(
            "Impact of '%s': %d direct, %d cascading, score %.2f",
            source.id,
            len(direct),
            len(cascading),
            raw_score,
        )

        return ImpactAnalysis(
            source_node_id=source.id,
            direct_impacts=direct,
            cascading_impacts=cascading,
            total_impact_score=total_score,
            summary=self._generate_summary(source.name, direct, cascading, raw_score),
            recommendations=recommendations_for(raw_score),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _generate_summary(
        source_name: str,
        direct: list[DirectImpact],
        cascading: list[CascadingImpact],
        score: float,
    ) -> str:
        parts = [
            f'Modifying "{source_name}" would directly impact {len(direct)} terms '
            f"and cascade to {len(cascading)} additional terms."
        ]
        if score > 50:
            parts.append("This is a high-impact change requiring careful review.")
        elif direct or cascading:
            parts.append("This change has moderate downstream effects.")
        else:
            parts.append("No downstream terms are affected.")
        return " ".join(parts)
