"""Interactive session over one loaded graph.

:class:`GraphSession` holds what a viewer needs between user actions:
the active filter, the visualisation toggles, the layout driver and the
current selection.  It has no UI of its own.  A presentation layer calls
:meth:`GraphSession.tick` once per frame and the selection/hover/ripple
methods in response to input.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel

from xref_engine.config import Settings, load_settings
from xref_engine.graph.crossref_graph import CrossRefGraph
from xref_engine.graph.stats import compute_graph_stats
from xref_engine.layout.force_layout import ForceSimulator, LayoutState
from xref_engine.models.graph import CrossRefLink, CrossRefNode
from xref_engine.models.impact import GraphStats, ImpactAnalysis
from xref_engine.models.palette import link_color, node_color
from xref_engine.models.view import GraphFilter, VisualizationSettings
from xref_engine.simulation.impact_analyzer import ImpactAnalyzer
from xref_engine.simulation.ripple import RippleAnimation

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _merged(current: M, changes: dict[str, Any]) -> M:
    """Validate *changes* over *current*, accepting field names or camelCase aliases."""
    names = {field.alias: name for name, field in type(current).model_fields.items() if field.alias}
    updates = {names.get(key, key): value for key, value in changes.items()}
    return type(current).model_validate({**current.model_dump(), **updates})


class GraphSession:
    """Filters, layout and impact selection for a single graph.

    Parameters
    ----------
    graph:
        The full validated graph.  Statistics are computed from it once.
    settings:
        Engine tuning; loaded from the environment when omitted.
    filters:
        Initial filter; keeps everything when omitted.
    visualization:
        Initial display toggles.
    seed:
        Layout seed, overriding ``settings.layout_seed``.
    """

    def __init__(
        self,
        graph: CrossRefGraph,
        *,
        settings: Settings | None = None,
        filters: GraphFilter | None = None,
        visualization: VisualizationSettings | None = None,
        seed: int | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._graph = graph
        self._stats = compute_graph_stats(graph)
        self._filters = filters or GraphFilter()
        self._visualization = visualization or VisualizationSettings()
        self._simulator = ForceSimulator(
            width=self._settings.canvas_width,
            height=self._settings.canvas_height,
            config=self._settings.simulation_config(),
            seed=seed if seed is not None else self._settings.layout_seed,
        )
        self._selected_node_id: str | None = None
        self._analysis: ImpactAnalysis | None = None
        self._highlighted: set[str] = set()

        self._apply_filters(warm=False)

    # -- Read-only views ----------------------------------------------------

    @property
    def graph(self) -> CrossRefGraph:
        return self._graph

    @property
    def visible_graph(self) -> CrossRefGraph:
        return self._visible

    @property
    def stats(self) -> GraphStats:
        return self._stats

    @property
    def filters(self) -> GraphFilter:
        return self._filters

    @property
    def visualization(self) -> VisualizationSettings:
        return self._visualization

    @property
    def simulator(self) -> ForceSimulator:
        return self._simulator

    @property
    def selected_node_id(self) -> str | None:
        return self._selected_node_id

    @property
    def impact_analysis(self) -> ImpactAnalysis | None:
        return self._analysis

    @property
    def highlighted_node_ids(self) -> set[str]:
        return set(self._highlighted)

    # -- Filters and settings -----------------------------------------------

    def _apply_filters(self, *, warm: bool) -> None:
        self._visible = self._graph.subgraph(self._filters)
        self._analyzer = self._settings.build_analyzer(self._visible)
        self._simulator.load(self._visible, warm=warm)
        if self._selected_node_id is not None:
            self.select_node(self._selected_node_id)

    def set_filters(self, **changes: Any) -> GraphFilter:
        """Merge *changes* into the filter and warm-restart the layout."""
        self._filters = _merged(self._filters, changes)
        self._apply_filters(warm=True)
        return self._filters

    def reset_filters(self) -> GraphFilter:
        self._filters = GraphFilter()
        self._apply_filters(warm=True)
        return self._filters

    def update_settings(self, **changes: Any) -> VisualizationSettings:
        """Merge display toggles; turning physics on restarts the iteration count."""
        previous = self._visualization
        self._visualization = _merged(previous, changes)
        if self._visualization.enable_physics and not previous.enable_physics:
            self._simulator.restart()
        return self._visualization

    # -- Per-frame ----------------------------------------------------------

    def tick(self) -> LayoutState | None:
        """Advance the layout one frame when physics is enabled."""
        if not self._visualization.enable_physics:
            return None
        return self._simulator.step()

    # -- Selection ----------------------------------------------------------

    def select_node(self, node_id: str | None) -> ImpactAnalysis | None:
        """Select a node and analyse it; ``None`` clears the selection.

        A selection hidden by the current filter keeps its id but gets
        the empty "Node not found" report.
        """
        self._selected_node_id = node_id
        if node_id is None:
            self._analysis = None
            self._highlighted = set()
            return None

        self._analysis = self._analyzer.analyze(node_id)
        self._highlighted = self._analysis.highlighted_node_ids()
        return self._analysis

    def hover_node(self, node_id: str | None) -> set[str]:
        """Return the node ids to highlight while *node_id* is hovered.

        An active selection keeps its impact chain highlighted.  Otherwise,
        with ripple effects on, hovering highlights the hovered node's
        direct neighbours.
        """
        if self._selected_node_id is not None:
            return set(self._highlighted)
        if node_id is None or not self._visualization.show_ripple_effects or node_id not in self._visible:
            return set()
        return self._visible.connected_node_ids(node_id)

    def trigger_ripple(self, node_id: str) -> RippleAnimation | None:
        """Build a ripple replay for *node_id*, or ``None`` when ripples are off."""
        if not self._visualization.show_ripple_effects:
            return None
        analysis = self._analyzer.analyze(node_id)
        return RippleAnimation.from_analysis(
            analysis,
            delay_per_depth_ms=self._settings.ripple_delay_per_depth_ms,
            progress_step=self._settings.ripple_progress_step,
        )

    # -- Palette ------------------------------------------------------------

    def node_color(self, node: CrossRefNode) -> str:
        return node_color(node, self._visualization.color_scheme)

    def link_color(self, link: CrossRefLink) -> str:
        return link_color(link)
