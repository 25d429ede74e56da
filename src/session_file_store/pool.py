"""Bounded-concurrency execution of many small async tasks.

A fixed set of worker coroutines drains an explicit queue, so at most
``limit`` items are ever in flight no matter how many are submitted.
Every item runs to completion; one item's failure never cancels another.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def run_bounded(
    items: Iterable[T],
    handler: Callable[[T], Awaitable[object]],
    limit: int,
) -> list[BaseException]:
    """Run ``handler(item)`` for every item, at most ``limit`` at a time.

    Parameters
    ----------
    items:
        Work items; consumed eagerly into the queue.
    handler:
        Coroutine function applied to each item.
    limit:
        Maximum number of concurrently running handlers (>= 1).

    Returns
    -------
    list[BaseException]
        Every exception raised by a handler, in completion order.  Empty
        when all items succeeded.
    """
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")

    queue: asyncio.Queue[T] = asyncio.Queue()
    for item in items:
        queue.put_nowait(item)
    total = queue.qsize()
    if total == 0:
        return []

    errors: list[BaseException] = []
    completed = 0

    async def worker() -> None:
        nonlocal completed
        while True:
            try:
                item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                await handler(item)
            except Exception as exc:  # noqa: BLE001 collected for the caller
                errors.append(exc)
            finally:
                completed += 1
                queue.task_done()

    await asyncio.gather(*(worker() for _ in range(min(limit, total))))
    if completed != total:
        raise RuntimeError(f"Only {completed} of {total} items completed")
    return errors


__all__ = ["run_bounded"]
