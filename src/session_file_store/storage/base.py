"""Abstract base class for async session stores.

This is the capability a host framework's session layer depends on.
Records are plain ``dict`` values owned by the caller.

Classes
-------
- AsyncSessionStore  — abstract base for all async session stores
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence


class AsyncSessionStore(ABC):
    """Protocol for async persistence of session records.

    All methods are coroutines.  Errors are raised, never returned; the
    one non-error "nothing here" outcome is ``get`` returning ``None``.
    """

    @abstractmethod
    async def get(self, session_id: str) -> dict[str, Any] | None:
        """Return the record stored under ``session_id``.

        Returns
        -------
        dict | None
            The record, or ``None`` when it exists but has expired.

        Raises
        ------
        OSError
            If the record could not be read.
        """

    @abstractmethod
    async def set(self, session_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Persist ``record`` under ``session_id``, replacing any previous one.

        Returns
        -------
        dict
            The persisted record.
        """

    @abstractmethod
    async def touch(self, session_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Refresh the access time and cookie of the stored record.

        Returns
        -------
        dict
            The persisted record.
        """

    @abstractmethod
    async def destroy(self, session_id: str) -> None:
        """Remove the record for ``session_id``.  Absent records are fine."""

    @abstractmethod
    async def length(self) -> int:
        """Return the number of stored records."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every stored record."""

    @abstractmethod
    async def list(self) -> Sequence[str]:
        """Return the storage keys of all stored records.

        Order is implementation-defined.
        """

    async def expired(self, session_id: str) -> bool:
        """Return True if ``session_id`` has no usable record."""
        return await self.get(session_id) is None


__all__ = ["AsyncSessionStore"]
