"""
Terminal logging for the journey demo server.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """
    Route all logging through a Rich handler.

    Args:
        verbose: DEBUG level with timestamps and source paths
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                show_time=True,
                show_path=verbose,
                rich_tracebacks=True,
            )
        ],
        force=True,
    )
    # aiohttp logs one line per request
    logging.getLogger("aiohttp.access").setLevel(logging.DEBUG if verbose else logging.WARNING)
