"""Tests for CompositeEvaluationObserver."""

from agent_bench.evaluation.infrastructure.composite_observer import (
    CompositeEvaluationObserver,
)
from tests.evaluation.fake_observer import FakeEvaluationObserver


class TestCompositeEvaluationObserver:
    """Every event reaches every child observer."""

    def test_fans_out_all_events(self) -> None:
        first, second = FakeEvaluationObserver(), FakeEvaluationObserver()
        composite = CompositeEvaluationObserver(observers=[first, second])

        composite.evaluation_started(run_key="r", evaluator_names=["a"], max_concurrent=1)
        composite.evaluator_started(run_key="r", evaluator="a")
        composite.evaluator_skipped(run_key="r", evaluator="a", reason="why")
        composite.evaluator_failed(run_key="r", evaluator="a", reason="oops")
        composite.evaluator_completed(run_key="r", evaluator="a", status="failed", duration_ms=3)
        composite.evaluation_completed(
            run_key="r", passed=0, failed=1, skipped=0, elapsed_seconds=0.1
        )

        for obs in (first, second):
            assert obs.started[0].evaluator_names == ["a"]
            assert obs.evaluator_started_names == ["a"]
            assert obs.evaluator_skipped_events[0].reason == "why"
            assert obs.evaluator_failed_events[0].reason == "oops"
            assert obs.evaluator_completed_events[0].status == "failed"
            assert obs.completed[0].failed == 1

    def test_empty_composite_is_a_no_op(self) -> None:
        CompositeEvaluationObserver(observers=[]).evaluator_started(run_key="r", evaluator="a")
