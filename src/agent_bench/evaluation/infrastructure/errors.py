"""Error types raised while building or running evaluators."""

from agent_bench.core.errors import BenchError


class EvaluatorTypeNotSupportedError(BenchError):
    """Raised when an evaluator config names a type with no registered factory."""

    def __init__(self, evaluator_type: str, known_types: list[str] | None = None) -> None:
        known = f" (known: {', '.join(known_types)})" if known_types else ""
        super().__init__(
            f"Failed to create evaluator: unsupported evaluator type '{evaluator_type}'{known}"
        )


class EvaluatorTimeoutError(BenchError):
    """Raised when an evaluator exceeds its per-evaluator time budget."""

    def __init__(self, evaluator: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Failed to evaluate with '{evaluator}': timed out after {timeout_seconds}s"
        )


class EvaluatorOutputError(BenchError):
    """Raised when an evaluator returns something that is not a valid verdict."""

    def __init__(self, evaluator: str, reason: str) -> None:
        super().__init__(
            f"Failed to read result of evaluator '{evaluator}': {reason}"
        )


class EvaluatorCommandError(BenchError):
    """Raised when a command an evaluator depends on exits unsuccessfully."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"Failed to run '{command}': {reason}")
