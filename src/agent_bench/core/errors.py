"""Base exception class for all agent-bench-specific errors."""


class BenchError(Exception):
    """Base class for all agent-bench errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
