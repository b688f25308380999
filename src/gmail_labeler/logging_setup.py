"""Logging configuration for the labeler process."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from .display import console

_configured = False


def configure_logging(verbose: bool = False) -> None:
    """Route log records through Rich. Safe to call more than once."""
    global _configured

    level = logging.DEBUG if verbose else logging.INFO
    if _configured:
        logging.getLogger().setLevel(level)
        return

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # googleapiclient logs every discovery/HTTP detail at INFO.
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
