"""Refactor CLI command: point out refactoring opportunities in one file."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..analysis.languages import Language, language_for_suffix
from ..analysis.refactoring import find_opportunities
from . import app
from ._common import console, resolve_config

_SEVERITY_STYLE = {"high": "red", "medium": "yellow", "low": "dim"}


@app.command()
def refactor(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ...,
        help="Source file to inspect",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    language: Optional[str] = typer.Option(
        None,
        "--language",
        "-l",
        help="Source language (default: inferred from the file suffix)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    List refactoring opportunities in FILE. Nothing is recorded.
    """
    config = resolve_config(ctx)
    lang = Language.parse(language) if language else language_for_suffix(file.suffix)
    code = file.read_text(encoding="utf-8", errors="replace")
    found = find_opportunities(code, lang, config.complexity_warning)

    if json_output:
        print(
            json.dumps(
                [
                    {
                        "type": o.type.value,
                        "severity": o.severity.value,
                        "description": o.description,
                        "location": o.location,
                        "suggested_approach": o.suggested_approach,
                    }
                    for o in found
                ],
                indent=2,
            )
        )
        return

    if not found:
        console.print(f"[green]No refactoring opportunities in {file.name}.[/green]")
        return

    table = Table(title=file.name, show_lines=True, pad_edge=True)
    table.add_column("Severity")
    table.add_column("Issue")
    table.add_column("Location", style="dim")
    table.add_column("Approach")
    for o in found:
        style = _SEVERITY_STYLE[o.severity.value]
        table.add_row(
            f"[{style}]{o.severity.value}[/{style}]",
            o.description,
            o.location,
            o.suggested_approach,
        )
    console.print(table)
