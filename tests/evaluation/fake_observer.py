"""FakeEvaluationObserver — records evaluation domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class EvaluationStartedEvent:
    run_key: str
    evaluator_names: list[str]
    max_concurrent: int


@dataclass(frozen=True)
class EvaluationCompletedEvent:
    run_key: str
    passed: int
    failed: int
    skipped: int


@dataclass(frozen=True)
class EvaluatorCompletedEvent:
    evaluator: str
    status: str


@dataclass(frozen=True)
class EvaluatorReasonEvent:
    evaluator: str
    reason: str


class FakeEvaluationObserver:
    """Records all emitted evaluation events as typed frozen dataclasses.

    Use in tests to assert which events were emitted and with what data,
    without mocking or patching.
    """

    def __init__(self) -> None:
        self._started: list[EvaluationStartedEvent] = []
        self._completed: list[EvaluationCompletedEvent] = []
        self._evaluator_started: list[str] = []
        self._evaluator_completed: list[EvaluatorCompletedEvent] = []
        self._evaluator_skipped: list[EvaluatorReasonEvent] = []
        self._evaluator_failed: list[EvaluatorReasonEvent] = []

    @property
    def started(self) -> list[EvaluationStartedEvent]:
        return self._started

    @property
    def completed(self) -> list[EvaluationCompletedEvent]:
        return self._completed

    @property
    def evaluator_started_names(self) -> list[str]:
        return self._evaluator_started

    @property
    def evaluator_completed_events(self) -> list[EvaluatorCompletedEvent]:
        return self._evaluator_completed

    @property
    def evaluator_skipped_events(self) -> list[EvaluatorReasonEvent]:
        return self._evaluator_skipped

    @property
    def evaluator_failed_events(self) -> list[EvaluatorReasonEvent]:
        return self._evaluator_failed

    def evaluation_started(
        self, run_key: str, evaluator_names: list[str], max_concurrent: int
    ) -> None:
        self._started.append(
            EvaluationStartedEvent(
                run_key=run_key,
                evaluator_names=list(evaluator_names),
                max_concurrent=max_concurrent,
            )
        )

    def evaluation_completed(
        self,
        run_key: str,
        passed: int,
        failed: int,
        skipped: int,
        elapsed_seconds: float,
    ) -> None:
        self._completed.append(
            EvaluationCompletedEvent(
                run_key=run_key, passed=passed, failed=failed, skipped=skipped
            )
        )

    def evaluator_started(self, run_key: str, evaluator: str) -> None:
        self._evaluator_started.append(evaluator)

    def evaluator_completed(
        self, run_key: str, evaluator: str, status: str, duration_ms: int
    ) -> None:
        self._evaluator_completed.append(
            EvaluatorCompletedEvent(evaluator=evaluator, status=status)
        )

    def evaluator_skipped(self, run_key: str, evaluator: str, reason: str) -> None:
        self._evaluator_skipped.append(EvaluatorReasonEvent(evaluator=evaluator, reason=reason))

    def evaluator_failed(self, run_key: str, evaluator: str, reason: str) -> None:
        self._evaluator_failed.append(EvaluatorReasonEvent(evaluator=evaluator, reason=reason))
