"""Shared CLI helpers."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from rich.console import Console

from ..config import EngineConfig, load_config
from ..engine import CodeTimelineEngine
from ..exceptions import CodeTimelineError
from ..persistence import SnapshotDB

console = Console()


def resolve_config(ctx: typer.Context) -> EngineConfig:
    """Build the engine config from the global CLI options stored on the context."""
    obj = ctx.obj or {}
    try:
        return load_config(
            config_file=obj.get("config"),
            verbose=obj.get("verbose", False),
            quiet=obj.get("quiet", False),
        )
    except CodeTimelineError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)


def project_root(ctx: typer.Context) -> Path:
    return (ctx.obj or {}).get("path", Path.cwd()).resolve()


def history_exists(root: Path, config: EngineConfig) -> bool:
    return SnapshotDB(root, config.data_dir).exists


@contextmanager
def open_engine(
    root: Path, config: EngineConfig, save: bool = True
) -> Iterator[CodeTimelineEngine]:
    """Yield an engine replayed from ``<root>/<data_dir>/history.db``.

    Snapshots are written back on a clean exit when ``save`` is set.
    """
    with SnapshotDB(root, config.data_dir) as db:
        engine = CodeTimelineEngine(config, persistence=db, project_id=root.name)
        engine.initialize()
        try:
            yield engine
        except BaseException:
            engine.shutdown(save=False)
            raise
        engine.shutdown(save=save)


def sparkline(values: list) -> str:
    """Generate an ASCII sparkline from a list of numeric values."""
    if not values:
        return ""
    blocks = " ▁▂▃▄▅▆▇█"
    mn, mx = min(values), max(values)
    if mx == mn:
        return blocks[4] * len(values)
    return "".join(blocks[min(8, int((v - mn) / (mx - mn) * 8))] for v in values)
