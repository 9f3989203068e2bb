"""Logging setup for the CLI and batch runs."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from scoresheet.config import settings


def configure_logging(
    level: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    """Route the package loggers through a rich handler.

    Args:
        level: Log level name (default from settings).
        console: Console to write to (default stderr).
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger("scoresheet")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel((level or settings.log_level).upper())
    logger.propagate = False
