"""Logging for the averse CLI.

Log records and interactive prompts share one stderr console, so command
output on stdout (rendered plans, recipes) stays clean enough to pipe.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console

stderr_console = Console(stderr=True)

FILE_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(level: str = "info", log_file: Path | None = None) -> None:
    """Route the "averse" logger to stderr at `level`.

    With a log file, debug records (planner choices, skipped files) are
    written there too, whatever the console level.
    """
    from rich.logging import RichHandler

    console_level = _level(level)
    root = logging.getLogger("averse")
    root.handlers.clear()
    root.setLevel(logging.DEBUG if log_file is not None else console_level)

    console_handler = RichHandler(
        console=stderr_console,
        level=console_level,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    root.addHandler(console_handler)

    if log_file is None:
        return
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    root.addHandler(file_handler)
