"""Lock ports — exclusive ownership of a run root."""

from pathlib import Path
from typing import Protocol


class RootLock(Protocol):
    @property
    def path(self) -> Path: ...

    def release(self) -> None: ...


class RootLocker(Protocol):
    def acquire(self, root: Path) -> RootLock:
        """Take the exclusive lock for ``root`` without blocking.

        Raises:
            WorkspaceBusyError: if another holder already owns the root.
        """
        ...
