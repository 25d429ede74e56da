"""Unit tests for session_file_store.retry and session_file_store.pool."""
from __future__ import annotations

import asyncio

import pytest

from session_file_store.config import StoreOptions
from session_file_store.pool import run_bounded
from session_file_store.retry import backoff_delays, retry_async

# ---------------------------------------------------------------------------
# backoff_delays
# ---------------------------------------------------------------------------


def test_backoff_delays_count_matches_retries() -> None:
    assert len(backoff_delays(StoreOptions(retries=3))) == 3
    assert backoff_delays(StoreOptions(retries=0)) == []


def test_backoff_delays_grow_and_cap() -> None:
    options = StoreOptions(retries=4, factor=2, min_timeout=10, max_timeout=50)
    assert backoff_delays(options) == [0.01, 0.02, 0.04, 0.05]


def test_backoff_delays_constant_with_unit_factor() -> None:
    assert backoff_delays(StoreOptions(retries=2)) == [0.05, 0.05]


# ---------------------------------------------------------------------------
# retry_async
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_retry_async_returns_first_success() -> None:
    calls: list[int] = []

    async def operation() -> str:
        calls.append(1)
        if len(calls) < 3:
            raise OSError("busy")
        return "ok"

    assert await retry_async(operation, [0.001] * 5) == "ok"
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_async_reraises_after_exhaustion() -> None:
    calls: list[int] = []

    async def operation() -> None:
        calls.append(1)
        raise FileNotFoundError("gone")

    with pytest.raises(FileNotFoundError):
        await retry_async(operation, [0.001, 0.001])
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_other_errors() -> None:
    calls: list[int] = []

    async def operation() -> None:
        calls.append(1)
        raise ValueError("bad config")

    with pytest.raises(ValueError):
        await retry_async(operation, [0.001] * 3)
    assert len(calls) == 1


# ---------------------------------------------------------------------------
# run_bounded
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_run_bounded_processes_every_item() -> None:
    seen: list[int] = []

    async def handler(item: int) -> None:
        await asyncio.sleep(0)
        seen.append(item)

    errors = await run_bounded(range(20), handler, limit=3)
    assert errors == []
    assert sorted(seen) == list(range(20))


@pytest.mark.asyncio
async def test_run_bounded_respects_limit() -> None:
    in_flight = 0
    peak = 0

    async def handler(item: int) -> None:
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0.005)
        in_flight -= 1

    await run_bounded(range(12), handler, limit=2)
    assert peak == 2


@pytest.mark.asyncio
async def test_run_bounded_collects_errors_without_short_circuit() -> None:
    seen: list[int] = []

    async def handler(item: int) -> None:
        seen.append(item)
        if item % 2:
            raise RuntimeError(f"item {item}")

    errors = await run_bounded(range(6), handler, limit=2)
    assert len(seen) == 6
    assert sorted(str(e) for e in errors) == ["item 1", "item 3", "item 5"]


@pytest.mark.asyncio
async def test_run_bounded_empty() -> None:
    async def handler(item: int) -> None:
        raise AssertionError("never called")

    assert await run_bounded([], handler, limit=4) == []


@pytest.mark.asyncio
async def test_run_bounded_rejects_zero_limit() -> None:
    async def handler(item: int) -> None:
        return None

    with pytest.raises(ValueError):
        await run_bounded([1], handler, limit=0)
