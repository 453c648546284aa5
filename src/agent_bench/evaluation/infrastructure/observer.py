"""StructlogEvaluationObserver — production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def evaluation_started(
        self, run_key: str, evaluator_names: list[str], max_concurrent: int
    ) -> None:
        self._log.info(
            "evaluation.started",
            run_key=run_key,
            evaluator_names=evaluator_names,
            max_concurrent=max_concurrent,
        )

    def evaluation_completed(
        self,
        run_key: str,
        passed: int,
        failed: int,
        skipped: int,
        elapsed_seconds: float,
    ) -> None:
        self._log.info(
            "evaluation.completed",
            run_key=run_key,
            passed=passed,
            failed=failed,
            skipped=skipped,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def evaluator_started(self, run_key: str, evaluator: str) -> None:
        self._log.info("evaluation.evaluator.started", run_key=run_key, evaluator=evaluator)

    def evaluator_completed(
        self, run_key: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        self._log.info(
            "evaluation.evaluator.completed",
            run_key=run_key,
            evaluator=evaluator,
            status=status,
            duration_ms=duration_ms,
        )

    def evaluator_skipped(self, run_key: str, evaluator: str, reason: str) -> None:
        self._log.warning(
            "evaluation.evaluator.skipped",
            run_key=run_key,
            evaluator=evaluator,
            reason=reason,
        )

    def evaluator_failed(self, run_key: str, evaluator: str, reason: str) -> None:
        self._log.error(
            "evaluation.evaluator.failed",
            run_key=run_key,
            evaluator=evaluator,
            reason=reason,
        )
