"""Error types raised while reading run history."""

from pathlib import Path

from agent_bench.core.errors import BenchError


class HistoryReadError(BenchError):
    """Raised when a history file is missing, unreadable, or holds no JSON at all."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to read history from {path}: {reason}")
