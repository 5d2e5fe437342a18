"""Logging setup for the code-timeline CLI.

Library modules only create ``logging.getLogger(__name__)`` loggers; the CLI
decides where records go by calling :func:`setup_logging` once per run.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "code_timeline"


def setup_logging(
    verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None
) -> logging.Logger:
    """
    Send ``code_timeline`` logs to stderr through rich, and optionally to a file.

    Args:
        verbose: Log engine and storage activity at DEBUG
        quiet: Only log errors
        log_file: Append plain-text records to this path as well

    Returns:
        The ``code_timeline`` package logger
    """
    level = logging.ERROR if quiet else logging.DEBUG if verbose else logging.WARNING

    handlers: list[logging.Handler] = [
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_path=verbose,
        )
    ]
    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(level=level, format="%(message)s", handlers=handlers, force=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    return logger
