"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events while evaluators run.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def evaluation_started(
        self, run_key: str, evaluator_names: list[str], max_concurrent: int
    ) -> None: ...

    def evaluation_completed(
        self,
        run_key: str,
        passed: int,
        failed: int,
        skipped: int,
        elapsed_seconds: float,
    ) -> None: ...

    def evaluator_started(self, run_key: str, evaluator: str) -> None: ...

    def evaluator_completed(
        self, run_key: str, evaluator: str, status: str, duration_ms: int
    ) -> None: ...

    def evaluator_skipped(self, run_key: str, evaluator: str, reason: str) -> None: ...

    def evaluator_failed(self, run_key: str, evaluator: str, reason: str) -> None: ...
