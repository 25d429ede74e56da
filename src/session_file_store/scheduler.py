"""Periodic background reaping.

``ReapScheduler`` runs a reap every ``reap_interval`` seconds on a
background asyncio task.  The task holds no reference that keeps an idle
event loop alive, and it never blocks the code that started it: the
first reap happens one full interval after :meth:`ReapScheduler.start`.

With ``reap_async`` each tick spawns the reap worker as a separate Python
process (``python -m session_file_store.worker``) instead of reaping
in-process.  The worker only receives the directory, TTL and file
extension on its command line and the secret through the environment, so
asynchronous reaping assumes the default codec and cipher parameters.
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Any

from session_file_store.config import StoreOptions
from session_file_store.encryption import CipherConfig
from session_file_store.errors import WorkerError
from session_file_store.reaper import Reaper, ReapResult

logger = logging.getLogger(__name__)

SECRET_ENV_VAR = "SESSION_FILE_STORE_SECRET"
WORKER_MODULE = "session_file_store.worker"

_STDERR_TAIL = 500


class ReapScheduler:
    """Interval trigger for the reaper.

    Parameters
    ----------
    options:
        Resolved store options (interval, async mode, fallback).
    reaper:
        The in-process reaper; also the fallback for a failed worker.
    """

    def __init__(self, options: StoreOptions, reaper: Reaper) -> None:
        self._options = options
        self._reaper = reaper
        self._task: asyncio.Task[Any] | None = None
        self._pending = False
        if options.reap_async and not self._worker_compatible(options):
            options.logger.warning(
                "reap_async is enabled with a custom codec or cipher configuration; "
                "the reap worker only understands the defaults"
            )

    @staticmethod
    def _worker_compatible(options: StoreOptions) -> bool:
        defaults = StoreOptions.model_fields
        return (
            options.encoder is defaults["encoder"].default
            and options.decoder is defaults["decoder"].default
            and options.encoding == defaults["encoding"].default
            and options.encrypt_encoding == defaults["encrypt_encoding"].default
            and options.crypto == CipherConfig()
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the interval task.

        Does nothing when reaping is disabled or already running.  Called
        outside a running event loop, the start is deferred until
        :meth:`ensure_started` is called from inside one.
        """
        if not self._options.reap_enabled or self.running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._pending = True
            logger.debug("No running event loop; reap scheduling deferred")
            return
        self._pending = False
        self._task = loop.create_task(self._run(), name="session-file-store-reaper")
        self._task.add_done_callback(self._loop_done_callback)
        logger.debug("Reaping every %ss", self._options.reap_interval)

    def ensure_started(self) -> None:
        """Complete a deferred :meth:`start`."""
        if self._pending:
            self.start()

    def stop(self) -> None:
        """Cancel the interval task.  Safe to call when not running."""
        self._pending = False
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def aclose(self) -> None:
        """Cancel the interval task and wait for it to finish."""
        task = self._task
        self.stop()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    @staticmethod
    def _loop_done_callback(task: asyncio.Task[Any]) -> None:
        if not task.cancelled():
            exc = task.exception()
            if exc is not None:
                logger.error("Reap scheduling loop failed: %s", exc, exc_info=exc)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._options.reap_interval)
            try:
                await self.tick()
            except WorkerError as exc:
                self._options.logger.error("Reap worker failed: %s", exc)
            except Exception as exc:  # noqa: BLE001 keep the schedule alive
                self._options.logger.warning("Scheduled reap failed: %s", exc)

    # ------------------------------------------------------------------
    # Work
    # ------------------------------------------------------------------

    async def tick(self) -> ReapResult | None:
        """Run the work of one interval."""
        if self._options.reap_async:
            self._options.logger.info("Starting reap worker process")
            return await self.async_reap()
        self._options.logger.info("Deleting expired sessions")
        return await self._reaper.reap()

    def worker_command(self) -> list[str]:
        """Return the argv used to spawn the reap worker."""
        return [
            sys.executable,
            "-m",
            WORKER_MODULE,
            str(self._options.path),
            str(self._options.ttl),
            f"--file-extension={self._options.file_extension}",
        ]

    def _worker_env(self) -> dict[str, str]:
        env = dict(os.environ)
        secret = self._options.secret
        if secret is not None:
            env[SECRET_ENV_VAR] = secret if isinstance(secret, str) else os.fsdecode(secret)
        else:
            env.pop(SECRET_ENV_VAR, None)
        return env

    async def _run_worker(self) -> None:
        try:
            process = await asyncio.create_subprocess_exec(
                *self.worker_command(),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
                env=self._worker_env(),
            )
        except OSError as exc:
            raise WorkerError(f"Could not start reap worker: {exc}") from exc
        _, stderr = await process.communicate()
        if process.returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()[-_STDERR_TAIL:]
            raise WorkerError(
                f"Reap worker exited with status {process.returncode}: {detail}",
                returncode=process.returncode,
            )

    async def async_reap(self) -> ReapResult | None:
        """Reap in a worker subprocess.

        Returns
        -------
        ReapResult | None
            ``None`` when the worker succeeded (its counts stay in the
            worker); the in-process result when the fallback ran.

        Raises
        ------
        WorkerError
            If the worker failed and ``reap_sync_fallback`` is off.
        """
        try:
            await self._run_worker()
        except WorkerError as exc:
            if not self._options.reap_sync_fallback:
                raise
            self._options.logger.warning("Reap worker failed, reaping in-process: %s", exc)
            return await self._reaper.reap()
        return None

    def __repr__(self) -> str:
        return (
            f"ReapScheduler(interval={self._options.reap_interval!r}, "
            f"async={self._options.reap_async!r}, running={self.running!r})"
        )


__all__ = ["SECRET_ENV_VAR", "ReapScheduler", "WORKER_MODULE"]
