"""Administrative CLI for a session directory.

Invoked as::

    session-file-store [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m session_file_store.cli.main

Commands
--------
- list   — List session files and whether they are live
- count  — Print the number of session files
- show   — Print one session record as JSON
- clear  — Delete every session file
- reap   — Delete expired session files once
"""
from __future__ import annotations

import asyncio
import json
import sys

import click
from rich.table import Table

from session_file_store import __version__, codec
from session_file_store.cli.console import configure_logging, console
from session_file_store.config import REAP_DISABLED, resolve_options
from session_file_store.errors import CipherError, CorruptSessionError, SessionBatchError
from session_file_store.reaper import Reaper
from session_file_store.scheduler import SECRET_ENV_VAR
from session_file_store.storage.files import SessionFiles

# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="session-file-store")
@click.option(
    "--path",
    default="sessions",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Session directory.",
)
@click.option("--ttl", default=3600.0, show_default=True, type=float, help="Default TTL in seconds.")
@click.option("--file-extension", default=".json", show_default=True, help="Session file suffix.")
@click.option("--secret", envvar=SECRET_ENV_VAR, default=None, hidden=True)
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
@click.pass_context
def cli(
    ctx: click.Context,
    path: str,
    ttl: float,
    file_extension: str,
    secret: str | None,
    verbose: bool,
) -> None:
    """Inspect and maintain a file-backed session directory."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["files"] = SessionFiles(
        resolve_options(
            path=path,
            ttl=ttl,
            file_extension=file_extension,
            secret=secret,
            reap_interval=REAP_DISABLED,
        )
    )


def _listing_failed(files: SessionFiles, exc: OSError) -> None:
    console.print(f"[red]Cannot list {files.options.path}:[/red] {exc.strerror or exc}")
    sys.exit(1)


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@cli.command(name="list")
@click.pass_context
def list_command(ctx: click.Context) -> None:
    """List session files with their status.

    Reading a corrupt file deletes it, exactly as a store read would.
    """
    files: SessionFiles = ctx.obj["files"]

    async def collect() -> list[tuple[str, str, str]]:
        rows = []
        for name in await files.list():
            session_id = codec.id_for(files.options, name)
            try:
                status = "[yellow]expired[/yellow]" if await files.expired(session_id) else "[green]live[/green]"
            except CorruptSessionError:
                status = "[red]corrupt (removed)[/red]"
            except (CipherError, OSError) as exc:
                status = f"[red]unreadable: {exc}[/red]"
            rows.append((session_id, name, status))
        return rows

    try:
        rows = asyncio.run(collect())
    except OSError as exc:
        _listing_failed(files, exc)
        return

    if not rows:
        console.print("[yellow]No sessions found.[/yellow]")
        return

    table = Table(title=f"Sessions in {files.options.path}")
    table.add_column("Session ID", style="cyan")
    table.add_column("File")
    table.add_column("Status")
    for row in rows:
        table.add_row(*row)
    console.print(table)


# ---------------------------------------------------------------------------
# count
# ---------------------------------------------------------------------------


@cli.command(name="count")
@click.pass_context
def count_command(ctx: click.Context) -> None:
    """Print the number of session files."""
    files: SessionFiles = ctx.obj["files"]
    try:
        console.print(asyncio.run(files.length()))
    except OSError as exc:
        _listing_failed(files, exc)


# ---------------------------------------------------------------------------
# show
# ---------------------------------------------------------------------------


@cli.command(name="show")
@click.argument("session_id")
@click.pass_context
def show_command(ctx: click.Context, session_id: str) -> None:
    """Print the record stored under SESSION_ID."""
    files: SessionFiles = ctx.obj["files"]
    try:
        record = asyncio.run(files.get(session_id))
    except FileNotFoundError:
        console.print(f"[red]Session not found:[/red] {session_id}")
        sys.exit(1)
    except CorruptSessionError as exc:
        console.print(f"[red]{exc}[/red] (file removed)")
        sys.exit(1)
    except (CipherError, OSError, ValueError) as exc:
        console.print(f"[red]Cannot read session {session_id}:[/red] {exc}")
        sys.exit(1)

    if record is None:
        console.print(f"[yellow]Session expired:[/yellow] {session_id}")
        sys.exit(1)
    console.print_json(json.dumps(record, default=str))


# ---------------------------------------------------------------------------
# clear
# ---------------------------------------------------------------------------


@cli.command(name="clear")
@click.confirmation_option(prompt="Delete every session file?")
@click.pass_context
def clear_command(ctx: click.Context) -> None:
    """Delete every session file."""
    files: SessionFiles = ctx.obj["files"]
    try:
        asyncio.run(files.clear())
    except OSError as exc:
        _listing_failed(files, exc)
    except SessionBatchError as exc:
        for error in exc.errors:
            console.print(f"[red]{error}[/red]")
        sys.exit(1)
    console.print("[green]Cleared.[/green]")


# ---------------------------------------------------------------------------
# reap
# ---------------------------------------------------------------------------


@cli.command(name="reap")
@click.pass_context
def reap_command(ctx: click.Context) -> None:
    """Delete expired session files once."""
    files: SessionFiles = ctx.obj["files"]
    try:
        result = asyncio.run(Reaper(files).reap())
    except OSError as exc:
        _listing_failed(files, exc)
        return
    except SessionBatchError as exc:
        for error in exc.errors:
            console.print(f"[red]{error}[/red]")
        sys.exit(1)
    console.print(f"[green]Reaped {result.deleted} of {result.scanned} session file(s).[/green]")


if __name__ == "__main__":
    cli()
