"""Report CLI command: health, debt and forecasts for the project timeline."""

import json

import typer
from rich.panel import Panel

from ..timeline import EvolutionReport
from . import app
from ._common import console, history_exists, open_engine, project_root, resolve_config


@app.command()
def report(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Summarize the project's evolution: health, maturity, trends and forecasts.
    """
    config = resolve_config(ctx)
    root = project_root(ctx)
    if not history_exists(root, config):
        console.print("[yellow]No history found.[/yellow]")
        raise typer.Exit(0)

    with open_engine(root, config, save=False) as engine:
        result = engine.timeline.generate_report()
        summary = engine.timeline.summary()

    if json_output:
        _output_json(result, summary)
    else:
        _output_rich(result)


def _output_json(result: EvolutionReport, summary: dict) -> None:
    summary.update(
        {
            "quality": {
                "average": round(result.quality.average_quality, 3),
                "trend": result.quality.trend.value,
            },
            "performance": {
                "average": round(result.performance.average_performance, 3),
                "trend": result.performance.trend.value,
            },
            "complexity": {
                "current": round(result.complexity.current_complexity, 3),
                "direction": result.complexity.direction.value,
            },
            "future_issues": [
                {
                    "type": issue.type.value,
                    "description": issue.description,
                    "probability": issue.probability,
                    "timeline": issue.timeline.label,
                }
                for issue in result.future_issues
            ],
            "insights": [insight.title for insight in result.insights],
        }
    )
    print(json.dumps(summary, indent=2))


def _output_rich(result: EvolutionReport) -> None:
    health_color = "green" if result.health_score >= 0.7 else "yellow"
    lines = [
        f"[bold]Version:[/bold] {result.current_version} ({result.total_versions} versions)",
        f"[bold]Health:[/bold] [{health_color}]{result.health_score:.2f}[/{health_color}]",
        f"[bold]Technical debt:[/bold] {result.technical_debt.value}",
        f"[bold]Maturity:[/bold] {result.maturity.value}   "
        f"[bold]Velocity:[/bold] {result.velocity.value}",
        f"[bold]Quality:[/bold] {result.quality.average_quality:.2f} ({result.quality.trend.value})",
        f"[bold]Complexity:[/bold] {result.complexity.current_complexity:.2f} "
        f"({result.complexity.direction.value})",
    ]
    if result.future_issues:
        lines.append("")
        lines.append("[bold]Forecast:[/bold]")
        lines.extend(
            f"  - {issue.description} [dim]({issue.probability:.0%} within "
            f"{issue.timeline.label})[/dim]"
            for issue in result.future_issues
        )
    if result.insights:
        lines.append("")
        lines.extend(f"[yellow]>[/yellow] {insight.title}" for insight in result.insights)

    console.print(Panel("\n".join(lines), title=f"[bold cyan]{result.project_id}[/bold cyan]"))
