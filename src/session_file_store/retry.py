"""Bounded retry with exponential backoff for session reads.

The delay before retry ``n`` (0-based) is::

    min(min_timeout * factor ** n, max_timeout)   # milliseconds

so ``retries`` plus the backoff ceiling bound the total time a read can
take.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from session_file_store.config import StoreOptions

T = TypeVar("T")


def backoff_delays(options: StoreOptions) -> list[float]:
    """Return the sleep, in seconds, before each retry."""
    return [
        min(options.min_timeout * options.factor**attempt, options.max_timeout) / 1000
        for attempt in range(options.retries)
    ]


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    delays: list[float],
    *,
    retry_on: tuple[type[BaseException], ...] = (OSError,),
    logger: logging.Logger | None = None,
    description: str = "operation",
) -> T:
    """Await ``operation()`` until it succeeds or ``delays`` run out.

    Parameters
    ----------
    operation:
        Zero-argument coroutine factory; called once per attempt.
    delays:
        Seconds to sleep before each retry.  ``len(delays) + 1`` attempts
        are made in total.
    retry_on:
        Exception types that trigger a retry.  Anything else propagates
        immediately.
    logger:
        Receives a debug line for every failed attempt that is retried.
    description:
        Used in log messages.

    Raises
    ------
    BaseException
        The exception from the final attempt.
    """
    _logger = logger or logging.getLogger(__name__)
    for attempt, delay in enumerate(delays, start=1):
        try:
            return await operation()
        except retry_on as exc:
            _logger.debug(
                "%s failed (attempt %d/%d), retrying in %.3fs: %s",
                description,
                attempt,
                len(delays) + 1,
                delay,
                exc,
            )
            await asyncio.sleep(delay)
    return await operation()


__all__ = ["backoff_delays", "retry_async"]
