"""Storage subpackage.

Public surface
--------------
- AsyncSessionStore — abstract base class a host session layer depends on
- SessionFiles      — per-record operations on the session directory

The complete store with background reaping is
``session_file_store.store.FileSessionStore``.
"""
from __future__ import annotations

from session_file_store.storage.base import AsyncSessionStore
from session_file_store.storage.files import SessionFiles

__all__ = [
    "AsyncSessionStore",
    "SessionFiles",
]
