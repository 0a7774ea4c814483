"""Logging setup for the CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    handler = RichHandler(console=console or Console(stderr=True), show_path=verbose, rich_tracebacks=True)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)
    # Playwright and httpx are chatty at DEBUG.
    for name in ("httpx", "httpcore", "asyncio"):
        logging.getLogger(name).setLevel(max(level, logging.INFO))
