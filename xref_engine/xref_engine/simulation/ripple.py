"""Timed ripple replay of an already-computed impact analysis.

Scheduling only: membership and depth come straight from the
:class:`~xref_engine.models.impact.ImpactAnalysis`, nothing is re-walked.
Direct impacts start at 0 ms and cascading impacts at
``depth * delay_per_depth_ms``.  Once started, each node's progress rises
from 0 by a fixed step per animation frame and is cleared (``None``) once
it would pass 1.

There is no clock in here.  The caller passes the elapsed time of each
frame to :meth:`RippleAnimation.advance`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import NamedTuple

from xref_engine.config import ConfigurationError
from xref_engine.models.impact import ImpactAnalysis

logger = logging.getLogger(__name__)

_DEFAULT_DELAY_PER_DEPTH_MS: float = 200.0
_DEFAULT_PROGRESS_STEP: float = 0.05


class RippleEvent(NamedTuple):
    node_id: str
    delay_ms: float


class RippleTick(NamedTuple):
    """Progress update for one node on one frame; ``None`` clears the ripple."""

    node_id: str
    progress: float | None


def schedule_ripple(
    analysis: ImpactAnalysis,
    delay_per_depth_ms: float = _DEFAULT_DELAY_PER_DEPTH_MS,
) -> list[RippleEvent]:
    """Turn an analysis into start times, earliest first.

    A node listed more than once (parallel links to the same direct
    target) is scheduled once, at its earliest delay.
    """
    delays: dict[str, float] = {}
    for direct in analysis.direct_impacts:
        delays.setdefault(direct.node_id, 0.0)
    for cascading in analysis.cascading_impacts:
        delay = cascading.depth * delay_per_depth_ms
        if cascading.node_id not in delays or delay < delays[cascading.node_id]:
            delays[cascading.node_id] = delay

    order = {node_id: i for i, node_id in enumerate(delays)}
    return sorted(
        (RippleEvent(node_id, delay) for node_id, delay in delays.items()),
        key=lambda e: (e.delay_ms, order[e.node_id]),
    )


@dataclass
class _Ripple:
    event: RippleEvent
    frames: int = -1  # -1 until started
    done: bool = False


class RippleAnimation:
    """Frame-by-frame progress for a scheduled ripple.

    Parameters
    ----------
    events:
        Output of :func:`schedule_ripple`.
    progress_step:
        Progress added per frame once a node has started.
    """

    def __init__(self, events: list[RippleEvent], progress_step: float = _DEFAULT_PROGRESS_STEP) -> None:
        if progress_step <= 0:
            raise ConfigurationError(f"progress_step must be positive, got {progress_step}")
        self._progress_step = progress_step
        self._ripples = [_Ripple(event) for event in events]

    @classmethod
    def from_analysis(
        cls,
        analysis: ImpactAnalysis,
        *,
        delay_per_depth_ms: float = _DEFAULT_DELAY_PER_DEPTH_MS,
        progress_step: float = _DEFAULT_PROGRESS_STEP,
    ) -> RippleAnimation:
        return cls(schedule_ripple(analysis, delay_per_depth_ms), progress_step)

    @property
    def events(self) -> list[RippleEvent]:
        return [r.event for r in self._ripples]

    @property
    def is_finished(self) -> bool:
        return all(r.done for r in self._ripples)

    def active_progress(self) -> dict[str, float]:
        """Current progress of every started, not yet cleared node."""
        return {
            r.event.node_id: self._progress(r) for r in self._ripples if r.frames >= 0 and not r.done
        }

    def _progress(self, ripple: _Ripple) -> float:
        # Rounded so that accumulated steps land exactly on 1.0.
        return round(ripple.frames * self._progress_step, 9)

    def advance(self, elapsed_ms: float) -> list[RippleTick]:
        """Process one animation frame at *elapsed_ms* since the trigger.

        Nodes whose delay has passed start at progress 0 on this frame;
        nodes already running gain one step, or are cleared once their
        progress would exceed 1.
        """
        ticks: list[RippleTick] = []
        for ripple in self._ripples:
            if ripple.done:
                continue
            if ripple.frames < 0:
                if elapsed_ms < ripple.event.delay_ms:
                    continue
                ripple.frames = 0
                ticks.append(RippleTick(ripple.event.node_id, 0.0))
                continue

            ripple.frames += 1
            progress = self._progress(ripple)
            if progress > 1.0:
                ripple.done = True
                ticks.append(RippleTick(ripple.event.node_id, None))
            else:
                ticks.append(RippleTick(ripple.event.node_id, progress))
        return ticks

    def frames(self, frame_ms: float = 16.0) -> Iterator[tuple[float, list[RippleTick]]]:
        """Drive the animation at a fixed frame interval until it finishes."""
        if frame_ms <= 0:
            raise ConfigurationError(f"frame_ms must be positive, got {frame_ms}")
        elapsed = 0.0
        while not self.is_finished:
            yield elapsed, self.advance(elapsed)
            elapsed += frame_ms
