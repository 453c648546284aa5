"""Tests for the fcntl-backed run root lock."""

import os
from pathlib import Path

import pytest

from agent_bench.workspace.infrastructure.errors import WorkspaceBusyError
from agent_bench.workspace.infrastructure.lock import LOCK_FILE_NAME, FileRootLocker


class TestFileRootLocker:
    """A root can be held by only one owner at a time."""

    def test_acquire_creates_root_and_lock_file(self, tmp_path: Path) -> None:
        root = tmp_path / "run-1"
        lock = FileRootLocker().acquire(root)
        try:
            assert root.is_dir()
            assert lock.path == root / LOCK_FILE_NAME
            assert lock.path.read_text() == str(os.getpid())
        finally:
            lock.release()

    def test_second_acquire_on_same_root_is_busy(self, tmp_path: Path) -> None:
        locker = FileRootLocker()
        lock = locker.acquire(tmp_path)
        try:
            with pytest.raises(WorkspaceBusyError) as exc_info:
                locker.acquire(tmp_path)
            assert exc_info.value.retriable is True
        finally:
            lock.release()

    def test_distinct_roots_do_not_conflict(self, tmp_path: Path) -> None:
        locker = FileRootLocker()
        first = locker.acquire(tmp_path / "a")
        second = locker.acquire(tmp_path / "b")
        assert first.held and second.held
        first.release()
        second.release()

    def test_release_allows_reacquire(self, tmp_path: Path) -> None:
        locker = FileRootLocker()
        locker.acquire(tmp_path).release()
        lock = locker.acquire(tmp_path)
        assert lock.held
        lock.release()

    def test_release_is_idempotent(self, tmp_path: Path) -> None:
        lock = FileRootLocker().acquire(tmp_path)
        lock.release()
        lock.release()
        assert not lock.held
