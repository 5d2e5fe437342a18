"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="code-timeline",
    help="Code Timeline - track how conversational code evolves",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .root import main as _main_callback  # noqa: F401, E402
from .track import track as _track  # noqa: F401, E402
from .history import history as _history  # noqa: F401, E402
from .patterns import patterns as _patterns  # noqa: F401, E402
from .refactor import refactor as _refactor  # noqa: F401, E402
from .trend import trend as _trend  # noqa: F401, E402
from .report import report as _report  # noqa: F401, E402


def main() -> None:
    app()
