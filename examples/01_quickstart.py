#!/usr/bin/env python3
"""Example: Quickstart for session-file-store

Minimal working example: open a store in a temporary directory, save a
session, read it back, refresh it and destroy it.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install session-file-store
"""
from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

import session_file_store
from session_file_store import FileSessionStore


async def main() -> None:
    print(f"session-file-store version: {session_file_store.__version__}")

    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "sessions"

        # Step 1: Open a store; the directory is created on demand
        async with FileSessionStore(path=path, ttl=1800) as store:
            # Step 2: Save a session record
            await store.set("session-001", {"cookie": {"path": "/"}, "views": 1})
            print(f"Saved: {await store.list()}")

            # Step 3: Read it back
            record = await store.get("session-001")
            print(f"Loaded views={record['views']} lastAccess={record['__lastAccess']}")

            # Step 4: Touch only refreshes the cookie and access time
            await store.touch("session-001", {"cookie": {"path": "/", "originalMaxAge": 60_000}})
            record = await store.get("session-001")
            print(f"After touch: views={record['views']} cookie={record['cookie']}")

            # Step 5: Destroy
            await store.destroy("session-001")
            print(f"Sessions left: {await store.length()}")


if __name__ == "__main__":
    asyncio.run(main())
