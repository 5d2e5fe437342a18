"""Patterns CLI command: activity and complexity over a time frame."""

import json

import typer
from rich.table import Table

from ..results import PatternAnalysis, TimeFrame
from . import app
from ._common import console, history_exists, open_engine, project_root, resolve_config


@app.command()
def patterns(
    ctx: typer.Context,
    timeframe: str = typer.Option(
        TimeFrame.LAST_WEEK.value,
        "--timeframe",
        "-t",
        help="Window to analyze: day | week | month | year",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Summarize coding activity, languages and trends over a time frame.

    [bold cyan]Examples:[/bold cyan]

      code-timeline patterns --timeframe month
    """
    try:
        frame = TimeFrame(timeframe.lower())
    except ValueError:
        console.print(f"[red]Unknown timeframe:[/red] {timeframe}")
        raise typer.Exit(1)

    config = resolve_config(ctx)
    root = project_root(ctx)
    if not history_exists(root, config):
        console.print("[yellow]No history found.[/yellow]")
        raise typer.Exit(0)

    with open_engine(root, config, save=False) as engine:
        analysis = engine.analyze_patterns(frame)

    if json_output:
        _output_json(analysis)
    else:
        _output_rich(analysis)


def _output_json(analysis: PatternAnalysis) -> None:
    print(
        json.dumps(
            {
                "timeframe": analysis.timeframe.value,
                "total_snapshots": analysis.total_snapshots,
                "language_distribution": analysis.language_distribution,
                "hourly_distribution": {str(h): n for h, n in analysis.hourly_distribution.items()},
                "average_complexity": round(analysis.average_complexity, 3),
                "productivity_score": round(analysis.productivity_score, 3),
                "trends": [
                    {
                        "kind": t.kind.value,
                        "direction": t.direction.value,
                        "description": t.description,
                    }
                    for t in analysis.trends
                ],
            },
            indent=2,
        )
    )


def _output_rich(analysis: PatternAnalysis) -> None:
    console.print()
    console.print(
        f"[bold cyan]Last {analysis.timeframe.value}:[/bold cyan] "
        f"{analysis.total_snapshots} snapshots, "
        f"average complexity {analysis.average_complexity:.2f}, "
        f"{analysis.productivity_score:.1f} lines/day"
    )

    if analysis.language_distribution:
        table = Table(show_header=True, pad_edge=True)
        table.add_column("Language")
        table.add_column("Snapshots", justify="right")
        for name, count in sorted(
            analysis.language_distribution.items(), key=lambda item: -item[1]
        ):
            table.add_row(name, str(count))
        console.print(table)

    for trend in analysis.trends:
        console.print(f"  [dim]{trend.kind.value}:[/dim] {trend.description}")
    console.print()
