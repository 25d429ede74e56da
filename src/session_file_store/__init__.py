"""session-file-store — File-backed session storage with TTL expiry.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import session_file_store
>>> session_file_store.__version__
'0.1.0'
"""
from __future__ import annotations

__version__: str = "0.1.0"

# Configuration
from session_file_store.config import REAP_DISABLED, StoreOptions, resolve_options
from session_file_store.encryption import CipherConfig, SessionCipher

# Errors
from session_file_store.errors import (
    CipherError,
    CorruptSessionError,
    InvalidSessionIdError,
    SessionBatchError,
    SessionStoreError,
    WorkerError,
)

# Codec and expiry
from session_file_store.codec import id_for, path_for, yaml_decoder, yaml_encoder
from session_file_store.expiry import LAST_ACCESS_KEY, is_expired

# Storage, reaping and scheduling
from session_file_store.reaper import Reaper, ReapResult
from session_file_store.scheduler import ReapScheduler
from session_file_store.storage.base import AsyncSessionStore
from session_file_store.storage.files import SessionFiles
from session_file_store.store import FileSessionStore

__all__ = [
    "__version__",
    # Configuration
    "REAP_DISABLED",
    "StoreOptions",
    "resolve_options",
    "CipherConfig",
    "SessionCipher",
    # Errors
    "CipherError",
    "CorruptSessionError",
    "InvalidSessionIdError",
    "SessionBatchError",
    "SessionStoreError",
    "WorkerError",
    # Codec and expiry
    "LAST_ACCESS_KEY",
    "id_for",
    "is_expired",
    "path_for",
    "yaml_decoder",
    "yaml_encoder",
    # Storage, reaping and scheduling
    "AsyncSessionStore",
    "FileSessionStore",
    "ReapResult",
    "ReapScheduler",
    "Reaper",
    "SessionFiles",
]
