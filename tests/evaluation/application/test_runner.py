"""Tests for EvaluatorRunner settle-all semantics."""

import asyncio
from pathlib import Path

from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.evaluation.application.runner import (
    EvaluatorRunner,
    artifacts_dirname,
    not_run_results,
)
from agent_bench.evaluation.domain.evaluator import EvaluationContext
from agent_bench.evaluation.domain.result import EvaluatorVerdict
from agent_bench.workspace.domain.handle import WorkspaceSnapshot
from tests.evaluation.fake_evaluators import (
    FakeEvaluator,
    FakeEvaluatorProvider,
    failing,
    malformed,
    passing,
    raising,
    skipping,
    slow,
)
from tests.evaluation.fake_observer import FakeEvaluationObserver


def _make_snapshot(tmp_path: Path) -> WorkspaceSnapshot:
    modified = tmp_path / "src-modified"
    modified.mkdir(exist_ok=True)
    return WorkspaceSnapshot(
        run_key="run-test",
        modified_dir=modified,
        expected_dir=None,
        artifacts_dir=tmp_path / "artifacts",
        evaluator_artifacts_dir=tmp_path / "artifacts" / "evaluators",
    )


def _make_runner(
    evaluators: dict[str, object],
    observer: FakeEvaluationObserver | None = None,
    max_concurrent: int = 4,
    timeout_seconds: float = 5.0,
) -> EvaluatorRunner:
    return EvaluatorRunner(
        provider=FakeEvaluatorProvider(evaluators=evaluators),  # type: ignore[arg-type]
        observer=observer or FakeEvaluationObserver(),
        max_concurrent=max_concurrent,
        timeout_seconds=timeout_seconds,
    )


def _configs(*names: str) -> list[EvaluatorConfig]:
    return [EvaluatorConfig(name=name) for name in names]


class _ConcurrencyTracker:
    """Evaluator that records how many instances overlap."""

    description = "tracks concurrency"

    def __init__(self, state: dict[str, int]) -> None:
        self._state = state

    async def check_preconditions(self, context: EvaluationContext) -> bool:
        return True

    async def evaluate(self, context: EvaluationContext) -> EvaluatorVerdict:
        self._state["active"] += 1
        self._state["peak"] = max(self._state["peak"], self._state["active"])
        await asyncio.sleep(0.02)
        self._state["active"] -= 1
        return EvaluatorVerdict(status="passed")


class TestResultsShape:
    """N configs always produce N results in config order."""

    async def test_results_follow_config_order(self, tmp_path: Path) -> None:
        runner = _make_runner(
            {"slow-pass": slow(0.05), "fast-fail": failing(), "fast-pass": passing()}
        )
        results = await runner.run(
            run_key="run-test",
            configs=_configs("slow-pass", "fast-fail", "fast-pass"),
            workspace=_make_snapshot(tmp_path),
        )
        assert [r.evaluator for r in results] == ["slow-pass", "fast-fail", "fast-pass"]
        assert [r.status for r in results] == ["passed", "failed", "passed"]

    async def test_verdict_fields_are_carried(self, tmp_path: Path) -> None:
        verdict = EvaluatorVerdict(
            status="passed", message="fine", metrics={"n": 1}, assertions={"a": 1.0}
        )
        runner = _make_runner({"e": FakeEvaluator(verdict=verdict)})
        [result] = await runner.run(
            run_key="run-test", configs=_configs("e"), workspace=_make_snapshot(tmp_path)
        )
        assert result.message == "fine"
        assert result.metrics == {"n": 1}
        assert result.assertions == {"a": 1.0}
        assert result.duration_ms >= 0

    async def test_mapping_verdict_is_accepted(self, tmp_path: Path) -> None:
        runner = _make_runner({"e": malformed({"status": "passed", "message": "dict ok"})})
        [result] = await runner.run(
            run_key="run-test", configs=_configs("e"), workspace=_make_snapshot(tmp_path)
        )
        assert result.status == "passed"
        assert result.message == "dict ok"

    async def test_each_evaluator_gets_private_artifacts_dir(self, tmp_path: Path) -> None:
        first, second = passing(), passing()
        runner = _make_runner({"a/b": first, "c": second})
        await runner.run(
            run_key="run-test", configs=_configs("a/b", "c"), workspace=_make_snapshot(tmp_path)
        )
        evaluators_dir = tmp_path / "artifacts" / "evaluators"
        assert first.contexts[0].artifacts_dir == evaluators_dir / "a_b"
        assert second.contexts[0].artifacts_dir == evaluators_dir / "c"
        assert (evaluators_dir / "a_b").is_dir()


class TestIsolation:
    """One evaluator's failure never affects another's result."""

    async def test_exception_becomes_failed_result(self, tmp_path: Path) -> None:
        observer = FakeEvaluationObserver()
        runner = _make_runner(
            {"boom": raising(RuntimeError("kaput")), "ok": passing()}, observer=observer
        )
        results = await runner.run(
            run_key="run-test", configs=_configs("boom", "ok"), workspace=_make_snapshot(tmp_path)
        )

        assert results[0].status == "failed"
        assert results[0].message == "Evaluator error: kaput"
        assert results[0].error is not None
        assert results[0].error.stack_trace is not None
        assert "RuntimeError" in results[0].error.stack_trace
        assert results[1].status == "passed"
        assert observer.evaluator_failed_events[0].evaluator == "boom"

    async def test_timeout_becomes_failed_result(self, tmp_path: Path) -> None:
        runner = _make_runner({"slow": slow(5), "ok": passing()}, timeout_seconds=0.1)
        results = await runner.run(
            run_key="run-test", configs=_configs("slow", "ok"), workspace=_make_snapshot(tmp_path)
        )
        assert results[0].status == "failed"
        assert results[0].error is not None
        assert "timed out after 0.1s" in results[0].error.message
        assert results[1].status == "passed"

    async def test_malformed_output_becomes_failed_result(self, tmp_path: Path) -> None:
        runner = _make_runner({"bad": malformed(42)})
        [result] = await runner.run(
            run_key="run-test", configs=_configs("bad"), workspace=_make_snapshot(tmp_path)
        )
        assert result.status == "failed"
        assert result.error is not None
        assert "expected EvaluatorVerdict, got int" in result.error.message

    async def test_invalid_mapping_becomes_failed_result(self, tmp_path: Path) -> None:
        runner = _make_runner({"bad": malformed({"status": "great"})})
        [result] = await runner.run(
            run_key="run-test", configs=_configs("bad"), workspace=_make_snapshot(tmp_path)
        )
        assert result.status == "failed"

    async def test_unknown_type_becomes_failed_result(self, tmp_path: Path) -> None:
        runner = _make_runner({"ok": passing()})
        results = await runner.run(
            run_key="run-test",
            configs=_configs("ok", "unknown"),
            workspace=_make_snapshot(tmp_path),
        )
        assert results[0].status == "passed"
        assert results[1].status == "failed"
        assert results[1].error is not None
        assert "unsupported evaluator type 'unknown'" in results[1].error.message


class TestSkipping:
    """Unmet preconditions yield skipped results that name the reason."""

    async def test_preconditions_not_met(self, tmp_path: Path) -> None:
        observer = FakeEvaluationObserver()
        evaluator = skipping(description="needs an expected tree")
        runner = _make_runner({"cmp": evaluator}, observer=observer)

        [result] = await runner.run(
            run_key="run-test", configs=_configs("cmp"), workspace=_make_snapshot(tmp_path)
        )

        assert result.status == "skipped"
        assert result.message == "Preconditions not met: needs an expected tree"
        assert evaluator.contexts == []
        assert observer.evaluator_skipped_events[0].evaluator == "cmp"

    def test_not_run_results(self) -> None:
        results = not_run_results(configs=_configs("a", "b"), reason="clone failed")
        assert [r.evaluator for r in results] == ["a", "b"]
        assert all(r.status == "skipped" for r in results)
        assert all(r.message == "Not run: clone failed" for r in results)


class TestConcurrency:
    """max_concurrent bounds how many evaluators run at once."""

    async def test_respects_limit(self, tmp_path: Path) -> None:
        state = {"active": 0, "peak": 0}
        names = [f"e{i}" for i in range(6)]
        runner = _make_runner(
            {name: _ConcurrencyTracker(state) for name in names}, max_concurrent=2
        )
        results = await runner.run(
            run_key="run-test", configs=_configs(*names), workspace=_make_snapshot(tmp_path)
        )
        assert len(results) == 6
        assert state["peak"] <= 2

    async def test_runs_in_parallel_up_to_limit(self, tmp_path: Path) -> None:
        state = {"active": 0, "peak": 0}
        names = [f"e{i}" for i in range(3)]
        runner = _make_runner(
            {name: _ConcurrencyTracker(state) for name in names}, max_concurrent=3
        )
        await runner.run(
            run_key="run-test", configs=_configs(*names), workspace=_make_snapshot(tmp_path)
        )
        assert state["peak"] == 3


class TestObserverEvents:
    """The runner reports lifecycle events in domain terms."""

    async def test_started_and_completed_counts(self, tmp_path: Path) -> None:
        observer = FakeEvaluationObserver()
        runner = _make_runner(
            {"p": passing(), "f": failing(), "s": skipping()}, observer=observer, max_concurrent=2
        )
        await runner.run(
            run_key="run-test", configs=_configs("p", "f", "s"), workspace=_make_snapshot(tmp_path)
        )

        assert observer.started[0].evaluator_names == ["p", "f", "s"]
        assert observer.started[0].max_concurrent == 2
        completed = observer.completed[0]
        assert (completed.passed, completed.failed, completed.skipped) == (1, 1, 1)
        assert sorted(observer.evaluator_started_names) == ["f", "p", "s"]
        assert len(observer.evaluator_completed_events) == 3


class TestArtifactsDirname:
    """Evaluator names are made filesystem-safe."""

    def test_keeps_safe_names(self) -> None:
        assert artifacts_dirname("git-diff") == "git-diff"

    def test_replaces_unsafe_characters(self) -> None:
        assert artifacts_dirname("scope check/v2") == "scope_check_v2"

    def test_dot_only_name_falls_back(self) -> None:
        assert artifacts_dirname("..") == "evaluator"
