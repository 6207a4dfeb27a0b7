"""
Colorful logging configuration using rich.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logging(level: Optional[str] = None, debug: bool = False) -> None:
    """
    Configure logging with a rich handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
               Defaults to DEBUG when ``debug`` is set, else INFO.
        debug: Shortcut used by ``APP_DEBUG``.
    """
    if level is None:
        level = "DEBUG" if debug else "INFO"

    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                tracebacks_show_locals=False,
                show_path=False,
                markup=False,
            )
        ],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
