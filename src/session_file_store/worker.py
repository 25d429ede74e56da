"""Standalone reap worker.

Spawned by ``ReapScheduler`` when ``reap_async`` is enabled, or run by
hand::

    session-file-store-reap PATH [TTL] [--file-extension EXT]
    python -m session_file_store.worker PATH [TTL]

Runs exactly one reap pass over ``PATH`` and exits.  The secret, if the
sessions are encrypted, is read from ``SESSION_FILE_STORE_SECRET``.

Exit status
-----------
- 0 — the pass completed (per-file errors are logged, not fatal)
- 1 — no PATH was given, or the directory could not be listed
"""
from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import click

from session_file_store.cli.console import configure_logging
from session_file_store.config import REAP_DISABLED, resolve_options
from session_file_store.errors import SessionBatchError
from session_file_store.reaper import Reaper
from session_file_store.scheduler import SECRET_ENV_VAR
from session_file_store.storage.files import SessionFiles

logger = logging.getLogger(__name__)


@click.command(name="session-file-store-reap")
@click.argument("path", required=False)
@click.argument("ttl", required=False, type=float)
@click.option("--file-extension", default=".json", show_default=True, help="Session file suffix.")
@click.option("--secret", envvar=SECRET_ENV_VAR, default=None, hidden=True)
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
def main(
    path: str | None,
    ttl: float | None,
    file_extension: str,
    secret: str | None,
    verbose: bool,
) -> None:
    """Delete expired session files under PATH once, then exit."""
    configure_logging(verbose)

    if not path:
        logger.error("Reap worker started with invalid path")
        sys.exit(1)

    overrides: dict[str, Any] = {
        "path": path,
        "file_extension": file_extension,
        "secret": secret,
        "reap_interval": REAP_DISABLED,
    }
    if ttl is not None:
        overrides["ttl"] = ttl
    options = resolve_options(**overrides)

    logger.info("Deleting expired sessions in %s", options.path)
    try:
        asyncio.run(Reaper(SessionFiles(options)).reap())
    except SessionBatchError as exc:
        for error in exc.errors:
            logger.warning("Reap error: %s", error)
    except OSError as exc:
        logger.error("Cannot reap %s: %s", options.path, exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
