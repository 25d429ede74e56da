"""Console and logging setup shared by the command-line entry points."""
from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Route log records to stderr through rich.

    Parameters
    ----------
    verbose:
        Log at DEBUG instead of INFO.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
