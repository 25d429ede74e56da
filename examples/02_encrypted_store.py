#!/usr/bin/env python3
"""Example: Encrypted Sessions

Stores sessions encrypted at rest and shows what lands on disk.  The
second half swaps the JSON codec for YAML with a matching extension.

Usage:
    python examples/02_encrypted_store.py

Requirements:
    pip install session-file-store
"""
from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from session_file_store import (
    CipherConfig,
    CipherError,
    FileSessionStore,
    yaml_decoder,
    yaml_encoder,
)


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "sessions"

        store = FileSessionStore(
            path=path,
            secret="keyboard cat",
            crypto=CipherConfig(algorithm="chacha20-poly1305"),
            encrypt_encoding="base64",
        )
        await store.set("user-42", {"cookie": {"path": "/"}, "cart": ["apple", "pear"]})
        raw = (path / "user-42.json").read_bytes()
        print(f"On disk ({len(raw)} bytes): {raw[:48]!r}...")
        print(f"Decrypted: {await store.get('user-42')}")

        wrong = FileSessionStore(path=path, secret="not the secret", encrypt_encoding="base64")
        try:
            await wrong.get("user-42")
        except CipherError as exc:
            print(f"Wrong secret: {exc}")
        await store.aclose()
        await wrong.aclose()

        yaml_store = FileSessionStore(
            path=Path(tmp) / "yaml-sessions",
            file_extension=".yaml",
            encoder=yaml_encoder,
            decoder=yaml_decoder,
        )
        await yaml_store.set("user-7", {"cookie": {"path": "/"}, "theme": "dark"})
        print((Path(tmp) / "yaml-sessions" / "user-7.yaml").read_text(encoding="utf-8"))
        await yaml_store.aclose()


if __name__ == "__main__":
    asyncio.run(main())
