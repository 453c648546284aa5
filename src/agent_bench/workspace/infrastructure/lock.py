"""Per-run-root exclusive lock backed by fcntl.flock.

The lock dies with the process that holds it, so a crashed run never leaves a
root permanently locked.
"""

import fcntl
import os
from pathlib import Path

from agent_bench.workspace.infrastructure.errors import WorkspaceBusyError

LOCK_FILE_NAME = ".lock"


class FileRootLock:
    """A held flock on ``<root>/.lock``. Release is idempotent."""

    def __init__(self, path: Path, fd: int) -> None:
        self._path = path
        self._fd: int | None = fd

    @property
    def path(self) -> Path:
        return self._path

    @property
    def held(self) -> bool:
        return self._fd is not None

    def release(self) -> None:
        if self._fd is None:
            return
        fd, self._fd = self._fd, None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)


class FileRootLocker:
    """Acquires non-blocking exclusive locks on run roots."""

    def acquire(self, root: Path) -> FileRootLock:
        """
        Lock ``root`` for the calling run.

        Raises:
            WorkspaceBusyError: if the lock is already held, in this process or another.
        """
        root.mkdir(parents=True, exist_ok=True)
        lock_path = root / LOCK_FILE_NAME
        fd = os.open(lock_path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as exc:
            os.close(fd)
            raise WorkspaceBusyError(root=root) from exc
        os.ftruncate(fd, 0)
        os.write(fd, str(os.getpid()).encode("ascii"))
        return FileRootLock(path=lock_path, fd=fd)
