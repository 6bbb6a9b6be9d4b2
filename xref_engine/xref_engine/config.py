"""Engine configuration loaded from environment variables.

The layout and scoring constants were tuned against a ~30 node facility
agreement graph.  They are exposed here rather than hard-coded so that
larger or denser graphs can be re-tuned without code changes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from xref_engine.graph.crossref_graph import CrossRefGraph
    from xref_engine.layout.force_layout import SimulationConfig
    from xref_engine.simulation.impact_analyzer import ImpactAnalyzer

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when an engine component is constructed with invalid tuning."""


class Settings(BaseSettings):
    """Engine settings loaded from environment variables with XREF_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="XREF_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False
    structured_logging: bool = False

    # Canvas
    canvas_width: float = Field(default=800.0, gt=0)
    canvas_height: float = Field(default=600.0, gt=0)

    # Force simulation
    sim_repulsion_strength: float = 200.0
    sim_attraction_strength: float = 0.05
    sim_center_gravity: float = 0.01
    sim_damping: float = 0.9
    sim_velocity_decay: float = 0.4
    sim_min_distance: float = 50.0
    sim_max_iterations: int = 200
    sim_margin: float = 50.0
    sim_seed_jitter: float = 30.0
    layout_seed: int | None = None

    # Impact analysis
    impact_max_depth: int = 3
    impact_score_divisor: float = 3.0

    # Ripple replay
    ripple_delay_per_depth_ms: float = 200.0
    ripple_progress_step: float = 0.05

    def simulation_config(self) -> SimulationConfig:
        """Build the layout tuning from the ``sim_*`` settings."""
        from xref_engine.layout.force_layout import SimulationConfig

        return SimulationConfig(
            repulsion_strength=self.sim_repulsion_strength,
            attraction_strength=self.sim_attraction_strength,
            center_gravity=self.sim_center_gravity,
            damping=self.sim_damping,
            velocity_decay=self.sim_velocity_decay,
            min_distance=self.sim_min_distance,
            max_iterations=self.sim_max_iterations,
            margin=self.sim_margin,
            seed_jitter=self.sim_seed_jitter,
        )

    def build_analyzer(self, graph: CrossRefGraph) -> ImpactAnalyzer:
        from xref_engine.simulation.impact_analyzer import ImpactAnalyzer

        return ImpactAnalyzer(
            graph,
            max_depth=self.impact_max_depth,
            score_divisor=self.impact_score_divisor,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings: canvas=%sx%s max_iterations=%d max_depth=%d",
            settings.canvas_width,
            settings.canvas_height,
            settings.sim_max_iterations,
            settings.impact_max_depth,
        )

    return settings
