"""Error types raised while persisting run results."""

from pathlib import Path

from agent_bench.core.errors import BenchError


class ResultsWriteError(BenchError):
    """Raised when a results bundle or history line cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to write results to {path}: {reason}")


class ResultsReadError(BenchError):
    """Raised when a results bundle file cannot be read or validated."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to read results from {path}: {reason}")
