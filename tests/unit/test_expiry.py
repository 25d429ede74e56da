"""Unit tests for session_file_store.expiry."""
from __future__ import annotations

import time

from session_file_store.expiry import (
    LAST_ACCESS_KEY,
    effective_ttl_ms,
    get_last_access,
    is_expired,
    now_ms,
    set_last_access,
)

NOW = 1_700_000_000_000


def _record(last_access: int, max_age: int | None = None) -> dict[str, object]:
    return {
        "cookie": {"originalMaxAge": max_age, "path": "/"},
        "views": 9,
        LAST_ACCESS_KEY: last_access,
    }


class TestIsExpired:
    def test_absent_record_is_expired(self) -> None:
        assert is_expired(None, 3600) is True

    def test_fresh_record_is_not_expired(self) -> None:
        assert is_expired(_record(NOW - 1000), 3600, now=NOW) is False

    def test_stale_record_is_expired(self) -> None:
        assert is_expired(_record(NOW - 3601 * 1000), 3600, now=NOW) is True

    def test_exact_boundary_is_not_expired(self) -> None:
        assert is_expired(_record(NOW - 3600 * 1000), 3600, now=NOW) is False

    def test_zero_ttl_is_always_expired(self) -> None:
        assert is_expired(_record(NOW), 0, now=NOW) is True

    def test_cookie_max_age_overrides_store_ttl(self) -> None:
        record = _record(NOW - 5000, max_age=2000)
        assert is_expired(record, 3600, now=NOW) is True
        record = _record(NOW - 5000, max_age=10_000)
        assert is_expired(record, 1, now=NOW) is False

    def test_null_max_age_falls_back_to_store_ttl(self) -> None:
        assert is_expired(_record(NOW - 5000, max_age=None), 1, now=NOW) is True

    def test_last_access_zero_is_expired(self) -> None:
        assert is_expired(_record(0), 1) is True

    def test_missing_last_access_counts_as_epoch(self) -> None:
        assert is_expired({"views": 1}, 3600) is True


class TestHelpers:
    def test_effective_ttl(self) -> None:
        assert effective_ttl_ms({}, 2) == 2000
        assert effective_ttl_ms({"cookie": {"originalMaxAge": 500}}, 2) == 500

    def test_set_last_access_stamps_now(self) -> None:
        record: dict[str, object] = {}
        before = now_ms()
        set_last_access(record)
        assert before <= get_last_access(record) <= now_ms()

    def test_set_last_access_explicit(self) -> None:
        record: dict[str, object] = {}
        set_last_access(record, now=42)
        assert record[LAST_ACCESS_KEY] == 42

    def test_now_ms_tracks_wall_clock(self) -> None:
        assert abs(now_ms() - time.time() * 1000) < 1000
