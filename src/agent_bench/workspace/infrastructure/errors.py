"""Error types raised by workspace infrastructure."""

from pathlib import Path

from agent_bench.core.errors import BenchError


class WorkspaceBusyError(BenchError):
    """Raised when another run already holds the lock for a run root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(
            f"Failed to acquire workspace lock: {root} is held by another run",
            retriable=True,
        )


class WorkspaceExistsError(BenchError):
    """Raised when a run root still contains a previous run's directories."""

    def __init__(self, root: Path) -> None:
        self.root = root
        super().__init__(
            f"Failed to create workspace: {root} already contains run directories"
        )


class CloneError(BenchError):
    """Raised when git cannot clone or check out a repository reference."""

    def __init__(self, repo: str, reason: str) -> None:
        self.repo = repo
        super().__init__(f"Failed to clone repository '{repo}': {reason}")


class CloneTimeoutError(BenchError):
    """Raised when cloning or copying a source exceeds its time budget."""

    def __init__(self, source: str, timeout_seconds: float) -> None:
        self.source = source
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Failed to materialize '{source}': timed out after {timeout_seconds}s"
        )


class ExpectedReferenceError(BenchError):
    """Raised when the expected reference cannot be resolved to local content."""

    def __init__(self, kind: str, identifier: str, reason: str) -> None:
        super().__init__(
            f"Failed to resolve expected {kind} '{identifier}': {reason}"
        )
