#!/usr/bin/env python3
"""Example: Background Reaping

Runs the reaper every half second against short-lived sessions, first
in-process and then through the worker subprocess.

Usage:
    python examples/03_background_reaping.py

Requirements:
    pip install session-file-store
"""
from __future__ import annotations

import asyncio
import logging
import tempfile
from pathlib import Path

from session_file_store import FileSessionStore


async def demo(label: str, path: Path, **options: object) -> None:
    async with FileSessionStore(path=path, ttl=1, reap_interval=0.5, **options) as store:
        for index in range(5):
            await store.set(f"{label}-{index}", {"cookie": {"path": "/"}})
        print(f"[{label}] stored {await store.length()} sessions")
        await asyncio.sleep(2.2)
        print(f"[{label}] after reaping: {await store.length()} sessions")


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")
    with tempfile.TemporaryDirectory() as tmp:
        await demo("in-process", Path(tmp) / "sync")
        await demo("worker", Path(tmp) / "async", reap_async=True, reap_sync_fallback=True)


if __name__ == "__main__":
    asyncio.run(main())
