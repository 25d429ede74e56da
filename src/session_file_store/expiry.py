"""Expiry policy.

Expiry is derived, never stored: a record is stale when its last-access
timestamp plus its effective TTL lies in the past.  The effective TTL is
the record's ``cookie.originalMaxAge`` (milliseconds) when present and
truthy, otherwise the store TTL.

Both the read path and the reaper call :func:`is_expired`, so the two
can never disagree about what "expired" means.
"""
from __future__ import annotations

import time
from collections.abc import Mapping, MutableMapping
from typing import Any

LAST_ACCESS_KEY = "__lastAccess"


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def get_last_access(record: Mapping[str, Any]) -> int | float | None:
    return record.get(LAST_ACCESS_KEY)


def set_last_access(record: MutableMapping[str, Any], now: int | None = None) -> None:
    """Stamp ``record`` with the access time, in place."""
    record[LAST_ACCESS_KEY] = now_ms() if now is None else now


def effective_ttl_ms(record: Mapping[str, Any], ttl: float) -> float:
    """Return the record's TTL in milliseconds.

    The cookie-level ``originalMaxAge`` wins over the store-level ``ttl``
    (seconds) when it is present and truthy.
    """
    cookie = record.get("cookie")
    if isinstance(cookie, Mapping) and cookie.get("originalMaxAge"):
        return cookie["originalMaxAge"]
    return ttl * 1000


def is_expired(
    record: Mapping[str, Any] | None,
    ttl: float,
    now: int | None = None,
) -> bool:
    """Return True when ``record`` should be treated as gone.

    Parameters
    ----------
    record:
        A decoded session record, or ``None`` for an absent record.
    ttl:
        Store-level TTL in seconds.
    now:
        Current time in milliseconds; defaults to :func:`now_ms`.

    Returns
    -------
    bool
        True for an absent record, a zero effective TTL, or a record whose
        ``lastAccess + effectiveTtl`` lies before ``now``.
    """
    if record is None:
        return True
    ttl_ms = effective_ttl_ms(record, ttl)
    if not ttl_ms:
        return True
    last_access = get_last_access(record) or 0
    current = now_ms() if now is None else now
    return last_access + ttl_ms < current


__all__ = [
    "LAST_ACCESS_KEY",
    "effective_ttl_ms",
    "get_last_access",
    "is_expired",
    "now_ms",
    "set_last_access",
]
