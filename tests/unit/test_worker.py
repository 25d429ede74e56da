"""Tests for the session-file-store-reap worker entry point."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from session_file_store.config import REAP_DISABLED, resolve_options
from session_file_store.expiry import LAST_ACCESS_KEY, now_ms
from session_file_store.scheduler import SECRET_ENV_VAR
from session_file_store.storage.files import SessionFiles
from session_file_store.worker import main


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def storage_dir(tmp_path: Path) -> Path:
    path = tmp_path / "sessions"
    path.mkdir()
    return path


def _write(path: Path, name: str, last_access: int) -> None:
    record = {"cookie": {"path": "/"}, LAST_ACCESS_KEY: last_access}
    (path / name).write_text(json.dumps(record), encoding="utf-8")


class TestWorker:
    def test_missing_path_exits_one(self, runner: CliRunner) -> None:
        result = runner.invoke(main, [])
        assert result.exit_code == 1

    def test_reaps_expired_files(self, runner: CliRunner, storage_dir: Path) -> None:
        _write(storage_dir, "old.json", 0)
        _write(storage_dir, "new.json", now_ms())
        result = runner.invoke(main, [str(storage_dir), "1"])
        assert result.exit_code == 0, result.output
        assert [p.name for p in storage_dir.iterdir()] == ["new.json"]

    def test_default_ttl_keeps_recent_files(self, runner: CliRunner, storage_dir: Path) -> None:
        _write(storage_dir, "recent.json", now_ms() - 60_000)
        result = runner.invoke(main, [str(storage_dir)])
        assert result.exit_code == 0
        assert (storage_dir / "recent.json").exists()

    def test_custom_file_extension(self, runner: CliRunner, storage_dir: Path) -> None:
        _write(storage_dir, "old.sess", 0)
        _write(storage_dir, "old.json", 0)
        result = runner.invoke(main, [str(storage_dir), "1", "--file-extension", ".sess"])
        assert result.exit_code == 0
        assert [p.name for p in storage_dir.iterdir()] == ["old.json"]

    def test_missing_directory_exits_one(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, [str(tmp_path / "absent"), "1"])
        assert result.exit_code == 1

    def test_item_errors_still_exit_zero(self, runner: CliRunner, storage_dir: Path) -> None:
        (storage_dir / "bad.json").write_text("{not json", encoding="utf-8")
        result = runner.invoke(main, [str(storage_dir), "1"])
        assert result.exit_code == 0
        assert not (storage_dir / "bad.json").exists()

    def test_secret_from_environment(self, runner: CliRunner, storage_dir: Path) -> None:
        files = SessionFiles(
            resolve_options(path=storage_dir, secret="squirrel", reap_interval=REAP_DISABLED)
        )
        asyncio.run(files.set("live", {"cookie": {}}))

        result = runner.invoke(main, [str(storage_dir)], env={SECRET_ENV_VAR: "squirrel"})

        assert result.exit_code == 0
        assert (storage_dir / "live.json").exists()
