"""Exception hierarchy for session-file-store.

Filesystem conditions (missing file, permission denied, transient I/O)
surface as the builtin ``OSError`` subclasses.  Everything the store
itself decides is an error derives from ``SessionStoreError``.

Classes
-------
- SessionStoreError      — base class
- InvalidSessionIdError  — id cannot be mapped to a file name
- CorruptSessionError    — stored payload could not be decoded
- CipherError            — encryption misconfiguration or failure
- SessionBatchError      — collected per-item failures of a bulk operation
- WorkerError            — reap worker subprocess could not complete
"""
from __future__ import annotations

from pathlib import Path


class SessionStoreError(Exception):
    """Base class for all errors raised by the session file store."""


class InvalidSessionIdError(SessionStoreError, ValueError):
    """Raised when a session id would escape the storage directory."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Invalid session id {session_id!r}")


class CorruptSessionError(SessionStoreError, ValueError):
    """Raised when a session file exists but its payload cannot be decoded.

    The original decoder exception is available as ``__cause__``.  By the
    time this is raised the offending file has already been deleted.

    Parameters
    ----------
    path:
        Path of the (now deleted) session file.
    """

    def __init__(self, path: Path, reason: str = "") -> None:
        self.path = path
        message = f"Corrupt session file {str(path)!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CipherError(SessionStoreError):
    """Raised when the at-rest cipher cannot be built or fails to run.

    Never retried: a cipher failure means misconfiguration (wrong secret,
    unsupported algorithm) or tampering, not a transient condition.
    """


class SessionBatchError(SessionStoreError):
    """Collected failures from a bulk operation (reap or clear).

    Bulk operations attempt every item; this is raised once at the end
    when at least one item failed.

    Parameters
    ----------
    operation:
        Name of the bulk operation, used in the message.
    errors:
        Every per-item exception, in completion order.
    """

    def __init__(self, operation: str, errors: list[BaseException]) -> None:
        self.operation = operation
        self.errors: list[BaseException] = list(errors)
        super().__init__(
            f"{operation} failed for {len(self.errors)} item(s): "
            + "; ".join(repr(err) for err in self.errors[:5])
            + (" ..." if len(self.errors) > 5 else "")
        )

    def __len__(self) -> int:
        return len(self.errors)


class WorkerError(SessionStoreError):
    """Raised when the out-of-process reap worker fails.

    Parameters
    ----------
    message:
        Human-readable description.
    returncode:
        Exit status of the worker, or ``None`` if it could not be spawned.
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        self.returncode = returncode
        super().__init__(message)


__all__ = [
    "CipherError",
    "CorruptSessionError",
    "InvalidSessionIdError",
    "SessionBatchError",
    "SessionStoreError",
    "WorkerError",
]
