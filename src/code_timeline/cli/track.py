"""Track CLI command: record one file as a new snapshot."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.panel import Panel

from ..analysis.languages import Language, language_for_suffix
from ..evolution.models import ConversationContext, WorkspaceType
from ..results import EvolutionResult
from ..versioning.models import VersionType
from . import app
from ._common import console, open_engine, project_root, resolve_config


@app.command()
def track(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ...,
        help="Source file to record as the next snapshot",
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
    workspace: str = typer.Option(
        WorkspaceType.CODE.value,
        "--workspace",
        "-w",
        help="Workspace type: general | code | creative | research",
    ),
    conversation: str = typer.Option(
        "cli",
        "--conversation",
        help="Conversation the snapshot belongs to",
    ),
    bump: Optional[str] = typer.Option(
        None,
        "--bump",
        help="Force the version bump: major | minor | patch | prerelease (default: derived from the change)",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
):
    """
    Record FILE as a new code snapshot and classify how it evolved.

    [bold cyan]Examples:[/bold cyan]

      code-timeline track app.swift

      code-timeline track notes.txt --language python --conversation thread-42
    """
    config = resolve_config(ctx)
    root = project_root(ctx)
    lang = Language.parse(language) if language else language_for_suffix(file.suffix)
    context = ConversationContext(conversation, WorkspaceType.parse(workspace))

    version_type = None
    if bump is not None:
        try:
            version_type = VersionType(bump.lower())
        except ValueError:
            console.print(f"[red]Unknown version bump:[/red] {bump}")
            raise typer.Exit(1)

    code = file.read_text(encoding="utf-8", errors="replace")
    with open_engine(root, config) as engine:
        result = engine.track_evolution(code, lang, context, version_type)

    if json_output:
        _output_json(result)
    else:
        _output_rich(file, result)


def _output_json(result: EvolutionResult) -> None:
    evolution = result.evolution
    print(
        json.dumps(
            {
                "version": result.version,
                "version_type": result.version_type.value,
                "language": result.snapshot.language.value,
                "evolution": {
                    "type": evolution.type.value,
                    "changes": sorted(kind.value for kind in evolution.changes),
                    "complexity": round(evolution.complexity, 3),
                    "lines_added": evolution.lines_added,
                    "lines_removed": evolution.lines_removed,
                    "functions_added": evolution.functions_added,
                    "functions_removed": evolution.functions_removed,
                },
                "patterns": [p.description for p in result.patterns],
                "suggestions": result.suggestions,
            },
            indent=2,
        )
    )


def _output_rich(file: Path, result: EvolutionResult) -> None:
    evolution = result.evolution
    changes = ", ".join(sorted(kind.value for kind in evolution.changes))
    lines = [
        f"[bold]Version:[/bold] [green]{result.version}[/green] ({result.version_type.value})",
        f"[bold]Evolution:[/bold] {evolution.type.value} [dim]({changes})[/dim]",
        f"[bold]Complexity:[/bold] {evolution.complexity:.2f}",
        (
            f"[bold]Lines:[/bold] +{evolution.lines_added} -{evolution.lines_removed}   "
            f"[bold]Functions:[/bold] +{evolution.functions_added} -{evolution.functions_removed}"
        ),
    ]
    if result.patterns:
        lines.append("")
        lines.append("[bold]Patterns:[/bold]")
        lines.extend(f"  - {p.description}" for p in result.patterns[:5])
    if result.suggestions:
        lines.append("")
        lines.extend(f"[yellow]>[/yellow] {s}" for s in result.suggestions)

    console.print(Panel("\n".join(lines), title=f"[bold cyan]{file.name}[/bold cyan]"))
