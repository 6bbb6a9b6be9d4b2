"""Rich output formatting for the xref CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

if TYPE_CHECKING:
    from xref_engine.layout.force_layout import LayoutState
    from xref_engine.models.impact import GraphStats, ImpactAnalysis
    from xref_engine.simulation.ripple import RippleEvent


_SEVERITY_STYLES: dict[str, str] = {
    "critical": "bold red",
    "high": "red",
    "medium": "yellow",
    "low": "green",
    "none": "dim",
}


def _styled_severity(severity: str) -> str:
    style = _SEVERITY_STYLES.get(severity, "white")
    return f"[{style}]{severity}[/{style}]"


def _score_colour(score: int) -> str:
    if score > 75:
        return "red"
    if score > 50:
        return "yellow"
    if score > 25:
        return "cyan"
    return "green"


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def display_graph_stats(console: Console, stats: GraphStats, warnings: list[str] | None = None) -> None:
    """Render node/link counts and the most connected term."""
    header_lines = [
        f"[bold]Nodes:[/bold]            {stats.total_nodes}",
        f"[bold]Links:[/bold]            {stats.total_links}",
        f"[bold]Modified:[/bold]         {stats.modified_nodes}",
        f"[bold]High impact:[/bold]      {stats.high_impact_nodes}",
        f"[bold]Avg connections:[/bold]  {stats.avg_connections:.2f}",
    ]
    if stats.most_connected_node is not None:
        mc = stats.most_connected_node
        header_lines.append(f"[bold]Most connected:[/bold]   {mc.name} ({mc.connections})")
    console.print(Panel("\n".join(header_lines), title="Cross-Reference Graph", border_style="blue"))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", style="dim")
    table.add_column("Type")
    table.add_column("Count", justify="right")
    for node_type, count in stats.nodes_by_type.items():
        table.add_row("node", node_type.label, str(count))
    for link_type, count in stats.links_by_type.items():
        table.add_row("link", link_type.label, str(count))
    console.print(table)

    for warning in warnings or []:
        console.print(f"[yellow]warning:[/yellow] {warning}")


# ---------------------------------------------------------------------------
# Impact
# ---------------------------------------------------------------------------


def display_impact_analysis(console: Console, analysis: ImpactAnalysis, source_name: str) -> None:
    """Render the impact tree, score and recommendations for one node."""
    colour = _score_colour(analysis.total_impact_score)
    console.print(
        Panel(
            f"{analysis.summary}\n\n[bold]Impact score:[/bold] "
            f"[{colour}]{analysis.total_impact_score}/100[/{colour}]",
            title=f"Impact of {source_name}",
            border_style=colour,
        )
    )

    tree = Tree(f"[bold yellow]{source_name}[/bold yellow]", guide_style="dim")
    if analysis.direct_impacts:
        direct_branch = tree.add("[bold blue]direct[/bold blue]")
        for impact in analysis.direct_impacts:
            direct_branch.add(
                f"{impact.node_name} [dim]({impact.impact_type.value})[/dim] "
                f"{_styled_severity(impact.severity.value)}"
            )
    else:
        tree.add("[dim]no direct impacts[/dim]")

    if analysis.cascading_impacts:
        cascade_branch = tree.add("[bold magenta]cascading[/bold magenta]")
        for impact in analysis.cascading_impacts:
            path = " -> ".join(impact.path_from_source)
            cascade_branch.add(
                f"{impact.node_name} [dim]depth {impact.depth} via {path}[/dim] "
                f"{_styled_severity(impact.severity.value)}"
            )
    console.print(tree)

    if analysis.recommendations:
        console.print("[bold]Recommendations:[/bold]")
        for item in analysis.recommendations:
            console.print(f"  - {item}")


def display_ripple_schedule(console: Console, events: list[RippleEvent]) -> None:
    if not events:
        console.print("[dim]Nothing to ripple.[/dim]")
        return
    table = Table(show_header=True, header_style="bold", title="Ripple Schedule")
    table.add_column("Node")
    table.add_column("Start (ms)", justify="right")
    for event in events:
        table.add_row(event.node_id, f"{event.delay_ms:.0f}")
    console.print(table)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def display_layout(console: Console, state: LayoutState) -> None:
    """Render final node coordinates after a layout run."""
    if not state.nodes:
        console.print("[yellow]No nodes visible under the current filters.[/yellow]")
        return

    table = Table(
        show_header=True,
        header_style="bold",
        title=f"Layout after {state.iteration} iterations ({state.width:.0f}x{state.height:.0f})",
    )
    table.add_column("Node")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    table.add_column("Pinned", justify="center")
    for row in state.snapshot():
        table.add_row(row.id, f"{row.x:.1f}", f"{row.y:.1f}", "yes" if row.pinned else "")
    console.print(table)
