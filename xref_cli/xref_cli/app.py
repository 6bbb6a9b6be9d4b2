"""xref CLI application -- Typer-based interface to the cross-reference engine.

Provides commands for graph statistics, impact analysis, ripple schedules
and force layout over a graph document on disk.  Human-readable output
goes to *stderr* via Rich; ``--json`` switches stdout to machine-readable
JSON so that pipelines can compose cleanly.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console
from rich.markup import escape

from xref_cli.display import (
    display_graph_stats,
    display_impact_analysis,
    display_layout,
    display_ripple_schedule,
)

if TYPE_CHECKING:
    from xref_engine.graph.crossref_graph import CrossRefGraph

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="xref",
    help="Contract cross-reference graph: layout and impact analysis",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Root log level (DEBUG, INFO, WARNING, ERROR).",
        envvar="XREF_LOG_LEVEL",
    ),
) -> None:
    """Global options applied to every command."""
    from xref_engine.config import load_settings
    from xref_engine.logging_setup import configure_logging

    global _json_output  # noqa: PLW0603
    _json_output = json_mode

    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        console.print(f"[red]Unknown log level '{log_level}'.[/red]")
        raise typer.Exit(code=2)
    configure_logging(load_settings(), level=level)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_GRAPH_ARGUMENT = typer.Argument(
    ...,
    help="Path to a graph JSON document (nodes and links).",
    exists=True,
    dir_okay=False,
    resolve_path=True,
)


def _write_json(data: Any) -> None:
    sys.stdout.write(json.dumps(data, indent=2) + "\n")


def _load_graph(path: Path, allow_partial: bool) -> CrossRefGraph:
    """Load and validate a graph, exiting with code 3 on failure."""
    from xref_engine.graph import GraphStructureError
    from xref_engine.loader import GraphLoadError, load_graph

    try:
        return load_graph(path, allow_partial=allow_partial)
    except GraphLoadError as exc:
        console.print(f"[red]Failed to load graph: {exc}[/red]")
        raise typer.Exit(code=3) from exc
    except GraphStructureError as exc:
        console.print("[red]Graph failed validation:[/red]")
        for issue in exc.issues:
            console.print(f"  [red]-[/red] {issue}")
        raise typer.Exit(code=3) from exc


def _require_node(graph: CrossRefGraph, node_id: str) -> None:
    if node_id in graph:
        return
    console.print(f"[red]Node '{node_id}' not found in graph.[/red]")
    available = ", ".join(sorted(n.id for n in graph)[:10])
    if available:
        console.print(f"[dim]Available nodes: {available}[/dim]")
    raise typer.Exit(code=3)


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------


@app.command()
def stats(
    graph_path: Path = _GRAPH_ARGUMENT,
    allow_partial: bool = typer.Option(
        False,
        "--allow-partial",
        help="Quarantine links with missing endpoints instead of failing.",
    ),
) -> None:
    """Show node/link counts and hint mismatches for a graph."""
    from xref_engine.graph import compute_graph_stats, validate_graph_hints

    graph = _load_graph(graph_path, allow_partial)
    graph_stats = compute_graph_stats(graph)
    warnings = validate_graph_hints(graph)

    if _json_output:
        _write_json(
            {
                "stats": graph_stats.model_dump(mode="json"),
                "warnings": warnings,
                "quarantined_links": [link.id for link in graph.quarantined_links],
                "fingerprint": graph.fingerprint,
            }
        )
    else:
        display_graph_stats(console, graph_stats, warnings)


# ---------------------------------------------------------------------------
# impact
# ---------------------------------------------------------------------------


@app.command()
def impact(
    graph_path: Path = _GRAPH_ARGUMENT,
    node: str = typer.Option(..., "--node", "-n", help="Id of the node being changed."),
    depth: int | None = typer.Option(
        None,
        "--depth",
        help="Deepest cascade hop to report (defaults to XREF_IMPACT_MAX_DEPTH).",
        min=1,
        max=50,
    ),
) -> None:
    """Analyse what would be affected if a node's value changed."""
    from xref_engine.config import load_settings

    overrides: dict[str, Any] = {}
    if depth is not None:
        overrides["impact_max_depth"] = depth
    settings = load_settings(**overrides)

    graph = _load_graph(graph_path, allow_partial=False)
    _require_node(graph, node)
    analysis = settings.build_analyzer(graph).analyze(node)

    if _json_output:
        _write_json(analysis.model_dump(mode="json"))
    else:
        display_impact_analysis(console, analysis, graph.require_node(node).name)


# ---------------------------------------------------------------------------
# ripple
# ---------------------------------------------------------------------------


@app.command()
def ripple(
    graph_path: Path = _GRAPH_ARGUMENT,
    node: str = typer.Option(..., "--node", "-n", help="Id of the node being changed."),
) -> None:
    """Show when each affected node would start rippling."""
    from xref_engine.config import load_settings
    from xref_engine.simulation import schedule_ripple

    settings = load_settings()
    graph = _load_graph(graph_path, allow_partial=False)
    _require_node(graph, node)
    analysis = settings.build_analyzer(graph).analyze(node)
    events = schedule_ripple(analysis, settings.ripple_delay_per_depth_ms)

    if _json_output:
        _write_json([{"node_id": e.node_id, "delay_ms": e.delay_ms} for e in events])
    else:
        display_ripple_schedule(console, events)


# ---------------------------------------------------------------------------
# layout
# ---------------------------------------------------------------------------


@app.command()
def layout(
    graph_path: Path = _GRAPH_ARGUMENT,
    width: float | None = typer.Option(None, "--width", help="Canvas width in px."),
    height: float | None = typer.Option(None, "--height", help="Canvas height in px."),
    iterations: int | None = typer.Option(
        None,
        "--iterations",
        help="Simulation steps (defaults to XREF_SIM_MAX_ITERATIONS).",
        min=1,
    ),
    seed: int | None = typer.Option(None, "--seed", help="Seed for the initial placement."),
    only_modified: bool = typer.Option(False, "--only-modified", help="Lay out modified nodes only."),
    only_high_impact: bool = typer.Option(False, "--only-high-impact", help="Lay out high/critical nodes only."),
    search: str = typer.Option("", "--search", help="Keep nodes whose name contains this text."),
) -> None:
    """Run the force layout and print final node positions."""
    from pydantic import ValidationError

    from xref_engine.config import ConfigurationError, load_settings
    from xref_engine.layout import ForceSimulator
    from xref_engine.models import GraphFilter

    overrides: dict[str, Any] = {}
    if width is not None:
        overrides["canvas_width"] = width
    if height is not None:
        overrides["canvas_height"] = height
    if iterations is not None:
        overrides["sim_max_iterations"] = iterations

    try:
        settings = load_settings(**overrides)
        simulator = ForceSimulator(
            width=settings.canvas_width,
            height=settings.canvas_height,
            config=settings.simulation_config(),
            seed=seed if seed is not None else settings.layout_seed,
        )
    except (ConfigurationError, ValidationError) as exc:
        console.print(f"[red]Invalid layout configuration: {escape(str(exc))}[/red]")
        raise typer.Exit(code=2) from exc

    graph = _load_graph(graph_path, allow_partial=False)
    visible = graph.subgraph(
        GraphFilter(
            show_only_modified=only_modified,
            show_only_high_impact=only_high_impact,
            search_query=search,
        )
    )

    simulator.load(visible)
    state = simulator.run()

    if _json_output:
        _write_json(
            {
                "iterations": state.iteration,
                "width": state.width,
                "height": state.height,
                "nodes": [row._asdict() for row in state.snapshot()],
            }
        )
    else:
        display_layout(console, state)
