"""Trend CLI command: sparkline of a timeline metric across versions."""

import json
from typing import Optional

import typer
from rich.table import Table

from . import app
from ._common import console, history_exists, open_engine, project_root, resolve_config, sparkline

_METRICS = ("complexity", "quality")


@app.command()
def trend(
    ctx: typer.Context,
    metric: str = typer.Option(
        "complexity",
        "--metric",
        "-m",
        help="Metric to show: complexity | quality",
    ),
    last_n: int = typer.Option(
        20,
        "--last",
        "-n",
        help="Number of most recent versions to show",
        min=2,
        max=1000,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Show how a metric moved across recent versions.

    [bold cyan]Examples:[/bold cyan]

      code-timeline trend

      code-timeline trend --metric quality --last 50
    """
    if metric not in _METRICS:
        console.print(f"[red]Unknown metric:[/red] {metric}. Choose from {', '.join(_METRICS)}.")
        raise typer.Exit(1)

    config = resolve_config(ctx)
    root = project_root(ctx)
    if not history_exists(root, config):
        console.print("[yellow]No history found.[/yellow]")
        raise typer.Exit(0)

    with open_engine(root, config, save=False) as engine:
        timeline = engine.timeline
        versions = timeline.version_history[-last_n:]
        if metric == "complexity":
            direction = timeline.complexity_trend().direction.value
            values = [v.change_analysis.complexity for v in versions]
        else:
            direction = timeline.quality_analysis().trend.value
            values = [v.metrics.overall_quality for v in versions]

    points = [
        {"version": str(v.version), "timestamp": v.timestamp.isoformat(), "value": round(x, 4)}
        for v, x in zip(versions, values)
    ]

    if json_output:
        print(json.dumps({"metric": metric, "direction": direction, "points": points}, indent=2))
        return

    if not points:
        console.print("[yellow]No versions recorded yet.[/yellow]")
        raise typer.Exit(0)

    console.print()
    console.print(
        f"[bold cyan]Trend:[/bold cyan] {metric} ({direction}, last {len(points)} versions)"
    )
    console.print(f"  {sparkline(values)}")
    console.print()

    table = Table(show_header=True, show_lines=False, pad_edge=True)
    table.add_column("Version")
    table.add_column("Date", style="dim")
    table.add_column("Value", justify="right")
    table.add_column("Delta", justify="right")

    prev: Optional[float] = None
    for p in points:
        delta_str = ""
        if prev is not None:
            d = p["value"] - prev
            if abs(d) > 0.001:
                color = "red" if (d > 0) == (metric == "complexity") else "green"
                delta_str = f"[{color}]{d:+.3f}[/{color}]"
        table.add_row(p["version"], p["timestamp"][:10], f"{p['value']:.3f}", delta_str)
        prev = p["value"]
    console.print(table)
