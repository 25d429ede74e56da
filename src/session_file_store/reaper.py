"""Bulk expiry sweep over the session directory.

Classes
-------
- ReapResult  — counts from one sweep
- Reaper      — deletes every expired session file
"""
from __future__ import annotations

from dataclasses import dataclass

from session_file_store import codec
from session_file_store.errors import SessionBatchError
from session_file_store.pool import run_bounded
from session_file_store.storage.files import SessionFiles


@dataclass(frozen=True)
class ReapResult:
    """Outcome of a successful sweep.

    Attributes
    ----------
    scanned:
        Number of session files considered.
    deleted:
        Number of expired files removed.
    """

    scanned: int
    deleted: int


class Reaper:
    """Deletes expired session files with bounded concurrency.

    Each file is handled as one independent task: read it, and delete it
    if it is expired (or absent).  At most ``reap_max_concurrent`` tasks
    are in flight.  A failing task never stops the others; all failures
    are raised together once every task has finished.

    Parameters
    ----------
    files:
        The storage engine to sweep.
    """

    def __init__(self, files: SessionFiles) -> None:
        self._files = files

    async def reap(self) -> ReapResult:
        """Run one sweep.

        Raises
        ------
        OSError
            If the storage directory cannot be listed.
        SessionBatchError
            If any per-file task failed (read, decode or delete error).
        """
        options = self._files.options
        logger = options.logger
        names = await self._files.list()
        if not names:
            return ReapResult(scanned=0, deleted=0)

        deleted = 0

        async def reap_one(name: str) -> None:
            nonlocal deleted
            session_id = codec.id_for(options, name)
            if not session_id:
                return
            if await self._files.destroy_expired(session_id):
                deleted += 1

        errors = await run_bounded(names, reap_one, options.reap_max_concurrent)
        logger.info(
            "Reaped %d expired session(s) of %d in %s (%d error(s))",
            deleted,
            len(names),
            options.path,
            len(errors),
        )
        if errors:
            raise SessionBatchError("reap", errors)
        return ReapResult(scanned=len(names), deleted=deleted)

    def __repr__(self) -> str:
        return f"Reaper(files={self._files!r})"


__all__ = ["ReapResult", "Reaper"]
