"""CompositeEvaluationObserver — fans out all events to a list of observers."""

from agent_bench.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = observers

    def evaluation_started(
        self, run_key: str, evaluator_names: list[str], max_concurrent: int
    ) -> None:
        for obs in self._observers:
            obs.evaluation_started(
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
        for obs in self._observers:
            obs.evaluation_completed(
                run_key=run_key,
                passed=passed,
                failed=failed,
                skipped=skipped,
                elapsed_seconds=elapsed_seconds,
            )

    def evaluator_started(self, run_key: str, evaluator: str) -> None:
        for obs in self._observers:
            obs.evaluator_started(run_key=run_key, evaluator=evaluator)

    def evaluator_completed(
        self, run_key: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        for obs in self._observers:
            obs.evaluator_completed(
                run_key=run_key,
                evaluator=evaluator,
                status=status,
                duration_ms=duration_ms,
            )

    def evaluator_skipped(self, run_key: str, evaluator: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluator_skipped(run_key=run_key, evaluator=evaluator, reason=reason)

    def evaluator_failed(self, run_key: str, evaluator: str, reason: str) -> None:
        for obs in self._observers:
            obs.evaluator_failed(run_key=run_key, evaluator=evaluator, reason=reason)
