"""File session store.

Persists each session as an individual file under a configurable
directory and deletes expired files in the background.

Classes
-------
- FileSessionStore  — file-per-session ``AsyncSessionStore``
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from session_file_store.config import StoreOptions, resolve_options
from session_file_store.reaper import Reaper, ReapResult
from session_file_store.scheduler import ReapScheduler
from session_file_store.storage.base import AsyncSessionStore
from session_file_store.storage.files import SessionFiles


class FileSessionStore(AsyncSessionStore):
    """Stores sessions as individual files with TTL expiry.

    Each session is stored as ``<path>/<session_id><file_extension>``.
    The directory is created when the store is constructed, and the
    background reaper is started (or armed to start on first use when no
    event loop is running yet).

    Parameters
    ----------
    options:
        A ``StoreOptions``, a mapping of option names, or ``None`` for
        the defaults.
    **overrides:
        Individual options taking precedence over ``options``.

    Example
    -------
    ::

        async with FileSessionStore(path="/var/lib/app/sessions", ttl=1800) as store:
            await store.set("abc", {"views": 1})
            record = await store.get("abc")
    """

    def __init__(
        self,
        options: StoreOptions | Mapping[str, Any] | None = None,
        **overrides: Any,
    ) -> None:
        self._options: StoreOptions = resolve_options(options, **overrides)
        self._options.path.mkdir(parents=True, exist_ok=True)
        self._files = SessionFiles(self._options)
        self._reaper = Reaper(self._files)
        self._scheduler = ReapScheduler(self._options, self._reaper)
        self._scheduler.start()

    @property
    def options(self) -> StoreOptions:
        return self._options

    @property
    def scheduler(self) -> ReapScheduler:
        return self._scheduler

    # ------------------------------------------------------------------
    # AsyncSessionStore interface
    # ------------------------------------------------------------------

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Return the record for ``session_id``, or ``None`` if expired.

        Raises
        ------
        FileNotFoundError
            If no file exists (after retries) and no fallback session
            function is configured.
        CorruptSessionError
            If the file could not be decoded; it has been deleted.
        """
        self._scheduler.ensure_started()
        return await self._files.get(session_id)

    async def set(self, session_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Persist ``record``; stamps its ``__lastAccess`` key in place."""
        self._scheduler.ensure_started()
        return await self._files.set(session_id, record)

    async def touch(self, session_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Refresh the stored record's cookie and access time only."""
        self._scheduler.ensure_started()
        return await self._files.touch(session_id, record)

    async def destroy(self, session_id: str) -> None:
        self._scheduler.ensure_started()
        await self._files.destroy(session_id)

    async def length(self) -> int:
        self._scheduler.ensure_started()
        return await self._files.length()

    async def clear(self) -> None:
        self._scheduler.ensure_started()
        await self._files.clear()

    async def list(self) -> list[str]:
        """Return the names of all session files (not ids)."""
        self._scheduler.ensure_started()
        return await self._files.list()

    async def expired(self, session_id: str) -> bool:
        self._scheduler.ensure_started()
        return await self._files.expired(session_id)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    async def reap(self) -> ReapResult:
        """Delete expired session files now, in-process."""
        return await self._reaper.reap()

    async def aclose(self) -> None:
        """Stop background reaping."""
        await self._scheduler.aclose()

    async def __aenter__(self) -> FileSessionStore:
        self._scheduler.ensure_started()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"FileSessionStore(path={str(self._options.path)!r})"


__all__ = ["FileSessionStore"]
