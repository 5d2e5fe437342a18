"""History CLI command: list recorded snapshots."""

import json
from typing import Optional

import typer
from rich.table import Table

from ..analysis.heuristics import complexity, function_count, line_count
from . import app
from ._common import console, history_exists, open_engine, project_root, resolve_config


@app.command()
def history(
    ctx: typer.Context,
    language: Optional[str] = typer.Option(
        None,
        "--language",
        "-l",
        help="Only list snapshots in this language",
    ),
    limit: int = typer.Option(
        20,
        "--limit",
        "-n",
        help="Maximum number of snapshots to list",
        min=1,
        max=1000,
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List recorded snapshots, oldest first, with their retained versions.

    [bold cyan]Examples:[/bold cyan]

      code-timeline history

      code-timeline history --language swift --limit 5
    """
    config = resolve_config(ctx)
    root = project_root(ctx)

    if not history_exists(root, config):
        console.print(
            "[yellow]No history found.[/yellow] "
            "Run [bold]code-timeline track FILE[/bold] first to record a snapshot."
        )
        raise typer.Exit(0)

    with open_engine(root, config, save=False) as engine:
        snapshots = engine.get_history(language, limit)
        versions = {(v.timestamp, v.code): v for v in engine.code_versions}

    if not snapshots:
        console.print("[yellow]No snapshots recorded yet.[/yellow]")
        raise typer.Exit(0)

    rows = []
    for snapshot in snapshots:
        record = versions.get((snapshot.timestamp, snapshot.code))
        rows.append(
            {
                "timestamp": snapshot.timestamp.isoformat(),
                "language": snapshot.language.value,
                "conversation_id": snapshot.conversation_id,
                "workspace_type": snapshot.workspace_type.value,
                "lines": line_count(snapshot.code),
                "functions": function_count(snapshot.code, snapshot.language),
                "complexity": round(complexity(snapshot.code, snapshot.language), 3),
                "version": record.version if record else None,
                "evolution": record.evolution.type.value if record else None,
            }
        )

    if json_output:
        print(json.dumps(rows, indent=2))
        return

    table = Table(title=f"Snapshots ({len(rows)})", show_lines=False, pad_edge=True)
    table.add_column("Time", style="dim")
    table.add_column("Version")
    table.add_column("Language")
    table.add_column("Evolution")
    table.add_column("Lines", justify="right")
    table.add_column("Funcs", justify="right")
    table.add_column("Complexity", justify="right")
    table.add_column("Conversation", style="dim")
    for row in rows:
        table.add_row(
            row["timestamp"][:19].replace("T", " "),
            row["version"] or "-",
            row["language"],
            row["evolution"] or "-",
            str(row["lines"]),
            str(row["functions"]),
            f"{row['complexity']:.2f}",
            row["conversation_id"],
        )
    console.print(table)
