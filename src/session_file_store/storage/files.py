"""Per-record operations on the session directory.

``SessionFiles`` is the storage engine behind ``FileSessionStore``, the
reaper and the command-line tools.  It holds no state besides the
resolved options: the directory is the only source of truth, and nothing
is cached between calls.

Multi-step operations are not atomic as a whole.  ``touch`` reads then
writes; a ``destroy`` landing between the two steps is undone by the
write.  Two writers to the same id race and the last rename wins.

Classes
-------
- SessionFiles  — get/set/touch/destroy/list/length/clear on session files
"""
from __future__ import annotations

import asyncio
import contextlib
import os
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from session_file_store import codec
from session_file_store.config import StoreOptions
from session_file_store.errors import CorruptSessionError, SessionBatchError
from session_file_store.expiry import is_expired, set_last_access
from session_file_store.pool import run_bounded
from session_file_store.retry import backoff_delays, retry_async


class SessionFiles:
    """File-per-session record operations.

    Parameters
    ----------
    options:
        Resolved store options.  The storage directory is not created
        here; see ``FileSessionStore``.
    """

    def __init__(self, options: StoreOptions) -> None:
        self._options = options
        self._logger = options.logger
        self._delays = backoff_delays(options)

    @property
    def options(self) -> StoreOptions:
        return self._options

    def path_for(self, session_id: str) -> Path:
        return codec.path_for(self._options, session_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _read_bytes(path: Path) -> bytes:
        async with aiofiles.open(path, "rb") as handle:
            return await handle.read()

    @staticmethod
    async def _remove(path: Path) -> bool:
        """Delete ``path``; return False if it was already gone."""
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        return True

    async def _write_atomic(self, path: Path, data: bytes) -> None:
        """Write ``data`` to ``path`` so readers never see a partial file.

        The bytes go to a uniquely named sibling first, are flushed to
        disk, and the sibling is renamed over ``path``.  The temporary
        name never matches the session file pattern.
        """
        tmp_path = codec.temp_path_for(path)
        try:
            async with aiofiles.open(tmp_path, "wb") as handle:
                await handle.write(data)
                await handle.flush()
                await asyncio.to_thread(os.fsync, handle.fileno())
            await aiofiles.os.replace(tmp_path, path)
        except BaseException:
            with contextlib.suppress(OSError):
                await aiofiles.os.remove(tmp_path)
            raise

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Read, decrypt and decode the record for ``session_id``.

        Raw reads are retried with backoff on ``OSError`` (a missing file
        included).  Decryption and decoding happen once, after the read.

        Returns
        -------
        dict | None
            The record; ``None`` when it has expired.  When every read
            attempt failed and ``fallback_session_fn`` is configured, its
            freshly stamped result.

        Raises
        ------
        OSError
            The last read error, when no fallback is configured; or the
            error deleting a corrupt file.
        CorruptSessionError
            The payload could not be decoded.  The file has been deleted.
        CipherError
            The payload could not be decrypted.  The file is kept.
        """
        path = self.path_for(session_id)
        try:
            raw = await retry_async(
                lambda: self._read_bytes(path),
                self._delays,
                logger=self._logger,
                description=f"Reading session {session_id!r}",
            )
        except OSError as exc:
            fallback = self._options.fallback_session_fn
            if fallback is None:
                raise
            self._logger.debug("Serving fallback session for %r: %s", session_id, exc)
            record = fallback(session_id)
            set_last_access(record)
            return record

        try:
            record = codec.decode_record(self._options, raw, path)
        except CorruptSessionError:
            self._logger.warning("Deleting corrupt session file %s", path)
            await self._remove(path)
            raise

        if is_expired(record, self._options.ttl):
            self._logger.debug("Session %r has expired", session_id)
            return None
        return record

    async def set(self, session_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Stamp ``record`` with the current access time and persist it.

        The caller's dict is modified in place (its ``__lastAccess`` key is
        set) and returned.
        """
        path = self.path_for(session_id)
        set_last_access(record)
        await self._write_atomic(path, codec.encode_record(self._options, record))
        self._logger.debug("Saved session %r", session_id)
        return record

    async def touch(self, session_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Replace only the stored cookie and refresh the access time.

        Every other field of the stored record is kept.  An absent or
        expired stored record starts from an empty dict.
        """
        stored = await self.get(session_id)
        merged: dict[str, Any] = stored if stored is not None else {}
        cookie = record.get("cookie")
        if cookie is not None:
            merged["cookie"] = cookie
        return await self.set(session_id, merged)

    async def destroy(self, session_id: str) -> None:
        """Delete the file for ``session_id``.  A missing file is success."""
        if await self._remove(self.path_for(session_id)):
            self._logger.debug("Destroyed session %r", session_id)

    async def expired(self, session_id: str) -> bool:
        return is_expired(await self.get(session_id), self._options.ttl)

    async def destroy_expired(self, session_id: str) -> bool:
        """Delete ``session_id`` if it is expired.

        A record that is still live (a concurrent writer refreshed it)
        is left alone.

        Returns
        -------
        bool
            True if the file was deleted.
        """
        record = await self.get(session_id)
        if not is_expired(record, self._options.ttl):
            self._logger.debug("Session %r is live; not reaping", session_id)
            return False
        await self.destroy(session_id)
        return True

    # ------------------------------------------------------------------
    # Directory operations
    # ------------------------------------------------------------------

    async def list(self) -> list[str]:
        """Return the names of all session files, sorted.

        Raises
        ------
        OSError
            If the storage directory cannot be listed.
        """
        names = await aiofiles.os.listdir(self._options.path)
        return sorted(name for name in names if codec.is_session_file(self._options, name))

    async def length(self) -> int:
        return len(await self.list())

    async def clear(self) -> None:
        """Delete every session file.

        Every deletion is attempted even when some fail.

        Raises
        ------
        OSError
            If the storage directory cannot be listed.
        SessionBatchError
            If any deletion failed.
        """
        names = await self.list()

        async def remove(name: str) -> None:
            await self._remove(self._options.path / name)

        errors = await run_bounded(names, remove, self._options.reap_max_concurrent)
        if errors:
            raise SessionBatchError("clear", errors)
        self._logger.debug("Cleared %d session file(s)", len(names))

    def __repr__(self) -> str:
        return f"SessionFiles(path={str(self._options.path)!r})"


__all__ = ["SessionFiles"]
