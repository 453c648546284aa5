"""Aggregator — turns history records into an AnalysisResult.

``analyze`` is a pure function of its inputs: the same records and thresholds
always yield the same result, apart from ``metadata.generated_at``.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, date, timedelta
from typing import Any

from pydantic import ValidationError

from agent_bench.analysis.domain.models import (
    AgentAnalysis,
    AgentStats,
    AnalysisMetadata,
    AnalysisResult,
    AssertionSummary,
    DailyAggregate,
    DateRange,
    EvaluatorAnalysis,
    EvaluatorMetricsSummary,
    EvaluatorStats,
    FailurePattern,
    GitDiffMetricsSummary,
    GroupStats,
    Insight,
    InsightThresholds,
    LastRun,
    NumericMetricSummary,
    OverallSummary,
    TestCaseAnalysis,
    TrendAggregates,
    TrendAnalysis,
    TrendDataPoint,
    TrendDirection,
    WeeklyAggregate,
)
from agent_bench.core.clock import utc_now
from agent_bench.core.version import harness_version
from agent_bench.run.domain.bundle import ExportedResultsBundle

RECENT_TREND_WINDOW = 5
MIN_TREND_RUNS = 3
MIN_INSIGHT_RUNS = 3
SUSTAINED_RUNS = 5
SUSTAINED_PASS_RATE = 0.95
CRITICAL_PASS_RATE = 0.2
MAX_FAILURE_PATTERNS = 5
FAILURE_PATTERN_LENGTH = 100
WEEKLY_MIN_DAYS = 7

_SEVERITY_ORDER = {"critical": 0, "warning": 1, "info": 2}
_DIGITS = re.compile(r"\d+")
_HEX = re.compile(r"[a-f0-9]{7,}", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


def analyze(
    records: Iterable[ExportedResultsBundle | Mapping[str, Any]],
    thresholds: InsightThresholds | None = None,
    skipped_records: int = 0,
    source: str = "<memory>",
    filters_applied: dict[str, str] | None = None,
) -> AnalysisResult:
    """Compute every breakdown, trend and insight for ``records``.

    Mapping inputs are validated; those that do not form a valid exported
    bundle are excluded and added to ``metadata.skipped_records``.
    """
    thresholds = thresholds or InsightThresholds()
    valid: list[ExportedResultsBundle] = []
    for record in records:
        if isinstance(record, ExportedResultsBundle):
            valid.append(record)
            continue
        try:
            valid.append(ExportedResultsBundle.model_validate(record))
        except ValidationError:
            skipped_records += 1

    ordered = sorted(valid, key=lambda r: r.exported_at)
    by_test_case = analyze_by_test_case(ordered, delta_threshold=thresholds.regression_delta)
    by_evaluator = analyze_by_evaluator(ordered)

    return AnalysisResult(
        metadata=AnalysisMetadata(
            source=source,
            total_records=len(ordered),
            skipped_records=skipped_records,
            date_range=DateRange(
                earliest=ordered[0].exported_at if ordered else None,
                latest=ordered[-1].exported_at if ordered else None,
            ),
            filters_applied=filters_applied or {},
            generated_at=utc_now(),
            harness_version=harness_version(),
        ),
        summary=overall_summary(ordered),
        by_test_case=by_test_case,
        by_agent=analyze_by_agent(ordered),
        by_evaluator=by_evaluator,
        trends=analyze_trends(ordered),
        insights=generate_insights(
            by_test_case=by_test_case, by_evaluator=by_evaluator, thresholds=thresholds
        ),
    )


def _rate(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


def _average(values: list[float] | list[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def _passed(record: ExportedResultsBundle) -> bool:
    return record.summary.overall_status == "passed"


@dataclass
class _Tally:
    runs: int = 0
    passed: int = 0
    duration: int = 0

    def add(self, passed: bool, duration_ms: int = 0) -> None:
        self.runs += 1
        self.passed += int(passed)
        self.duration += duration_ms

    def stats(self, name: str, with_duration: bool = True) -> GroupStats:
        return GroupStats(
            name=name,
            run_count=self.runs,
            pass_rate=_rate(self.passed, self.runs),
            avg_duration_ms=_rate(self.duration, self.runs) if with_duration else None,
        )


def _group_by(
    records: list[ExportedResultsBundle], key: Any
) -> dict[str, list[ExportedResultsBundle]]:
    groups: dict[str, list[ExportedResultsBundle]] = {}
    for record in records:
        groups.setdefault(key(record), []).append(record)
    return groups


def overall_summary(records: list[ExportedResultsBundle]) -> OverallSummary:
    total = len(records)
    passed = sum(1 for r in records if r.summary.overall_status == "passed")
    failed = sum(1 for r in records if r.summary.overall_status == "failed")
    total_duration = sum(r.execution.duration_ms for r in records)

    evaluations = [e for r in records for e in r.evaluators]
    eval_passed = sum(1 for e in evaluations if e.status == "passed")
    eval_failed = sum(1 for e in evaluations if e.status == "failed")

    agent_success = sum(1 for r in records if r.agent.status == "success")
    agent_failed = sum(1 for r in records if r.agent.status == "failed")
    agent_timeout = sum(1 for r in records if r.agent.status == "timeout")

    return OverallSummary(
        total_runs=total,
        passed_runs=passed,
        failed_runs=failed,
        partial_runs=total - passed - failed,
        pass_rate=_rate(passed, total),
        avg_duration_ms=_rate(total_duration, total),
        total_duration_ms=total_duration,
        evaluator_stats=EvaluatorStats(
            total_evaluations=len(evaluations),
            passed=eval_passed,
            failed=eval_failed,
            skipped=len(evaluations) - eval_passed - eval_failed,
            pass_rate=_rate(eval_passed, len(evaluations)),
        ),
        agent_stats=AgentStats(
            successful_executions=agent_success,
            failed_executions=agent_failed,
            timeout_executions=agent_timeout,
            success_rate=_rate(agent_success, agent_success + agent_failed + agent_timeout),
        ),
    )


def recent_trend(
    records: list[ExportedResultsBundle], delta_threshold: float = 0.2
) -> TrendDirection:
    """Compare pass rates of the two halves of the last few runs.

    ``records`` must already be in chronological order.
    """
    if len(records) < MIN_TREND_RUNS:
        return "insufficient_data"
    outcomes = [1.0 if _passed(r) else 0.0 for r in records[-RECENT_TREND_WINDOW:]]
    midpoint = len(outcomes) // 2
    delta = _average(outcomes[midpoint:]) - _average(outcomes[:midpoint])
    if delta > delta_threshold:
        return "improving"
    if delta < -delta_threshold:
        return "degrading"
    return "stable"


def _sort_groups[T](items: list[T], name: Any) -> list[T]:
    return sorted(items, key=lambda item: (-item.run_count, name(item)))


def analyze_by_test_case(
    records: list[ExportedResultsBundle], delta_threshold: float = 0.2
) -> list[TestCaseAnalysis]:
    results: list[TestCaseAnalysis] = []
    for name, group in _group_by(records, lambda r: r.test_case.name).items():
        durations = [r.execution.duration_ms for r in group]
        evaluations = [e for r in group for e in r.evaluators]

        agents: dict[str, _Tally] = {}
        for record in group:
            agents.setdefault(record.agent.type, _Tally()).add(
                passed=_passed(record), duration_ms=record.execution.duration_ms
            )
        evaluators: dict[str, _Tally] = {}
        for evaluation in evaluations:
            evaluators.setdefault(evaluation.evaluator, _Tally()).add(
                passed=evaluation.status == "passed", duration_ms=evaluation.duration_ms
            )

        last = group[-1]
        results.append(
            TestCaseAnalysis(
                name=name,
                description=last.test_case.description,
                repo=last.test_case.repo,
                run_count=len(group),
                overall_pass_rate=_rate(sum(1 for r in group if _passed(r)), len(group)),
                evaluator_pass_rate=_rate(
                    sum(1 for e in evaluations if e.status == "passed"), len(evaluations)
                ),
                avg_duration_ms=_average(durations),
                min_duration_ms=min(durations),
                max_duration_ms=max(durations),
                agents_used=[tally.stats(agent) for agent, tally in agents.items()],
                evaluators=[tally.stats(ev) for ev, tally in evaluators.items()],
                recent_trend=recent_trend(group, delta_threshold=delta_threshold),
                last_run=LastRun(
                    timestamp=last.exported_at,
                    status=last.summary.overall_status,
                    duration_ms=last.execution.duration_ms,
                ),
            )
        )
    return _sort_groups(results, lambda tc: tc.name)


def analyze_by_agent(records: list[ExportedResultsBundle]) -> list[AgentAnalysis]:
    results: list[AgentAnalysis] = []
    for agent_type, group in _group_by(records, lambda r: r.agent.type).items():
        durations = [r.execution.duration_ms for r in group]

        test_cases: dict[str, _Tally] = {}
        for record in group:
            test_cases.setdefault(record.test_case.name, _Tally()).add(passed=_passed(record))
        evaluators: dict[str, _Tally] = {}
        for evaluation in (e for r in group for e in r.evaluators):
            evaluators.setdefault(evaluation.evaluator, _Tally()).add(
                passed=evaluation.status == "passed"
            )

        results.append(
            AgentAnalysis(
                type=agent_type,
                run_count=len(group),
                success_rate=_rate(
                    sum(1 for r in group if r.agent.status == "success"), len(group)
                ),
                timeout_count=sum(1 for r in group if r.agent.status == "timeout"),
                avg_exit_code=_average([r.agent.exit_code for r in group]),
                avg_duration_ms=_average(durations),
                min_duration_ms=min(durations),
                max_duration_ms=max(durations),
                test_cases=[t.stats(n, with_duration=False) for n, t in test_cases.items()],
                evaluator_performance=[
                    t.stats(n, with_duration=False) for n, t in evaluators.items()
                ],
            )
        )
    return _sort_groups(results, lambda a: a.type)


def failure_pattern(message: str) -> str:
    """Normalise a failure message so messages differing only in numbers or hashes group."""
    pattern = _DIGITS.sub("N", message)
    pattern = _HEX.sub("HASH", pattern)
    return _WHITESPACE.sub(" ", pattern).strip()[:FAILURE_PATTERN_LENGTH]


def failure_patterns(messages: list[str]) -> list[FailurePattern]:
    counts: dict[str, int] = {}
    examples: dict[str, str] = {}
    for message in messages:
        pattern = failure_pattern(message)
        counts[pattern] = counts.get(pattern, 0) + 1
        examples.setdefault(pattern, message)
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [
        FailurePattern(pattern=pattern, count=count, example_message=examples[pattern])
        for pattern, count in ranked[:MAX_FAILURE_PATTERNS]
    ]


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def metrics_summary(
    evaluator_name: str, collections: list[dict[str, Any]]
) -> EvaluatorMetricsSummary:
    if not collections:
        return EvaluatorMetricsSummary()

    git_diff: GitDiffMetricsSummary | None = None
    if evaluator_name == "git-diff":
        files = [m["files_changed"] for m in collections if _is_number(m.get("files_changed"))]
        added = [m["lines_added"] for m in collections if _is_number(m.get("lines_added"))]
        removed = [m["lines_removed"] for m in collections if _is_number(m.get("lines_removed"))]
        if files:
            git_diff = GitDiffMetricsSummary(
                avg_files_changed=_average(files),
                avg_lines_added=_average(added),
                avg_lines_removed=_average(removed),
                max_files_changed=int(max(files)),
                max_lines_changed=int(
                    max(
                        (a + (removed[i] if i < len(removed) else 0) for i, a in enumerate(added)),
                        default=0,
                    )
                ),
            )

    values: dict[str, list[float]] = {}
    for metrics in collections:
        for key, value in metrics.items():
            if _is_number(value):
                values.setdefault(key, []).append(float(value))
    numeric = {
        key: NumericMetricSummary(
            avg=_average(series), min=min(series), max=max(series), count=len(series)
        )
        for key, series in sorted(values.items())
    }
    return EvaluatorMetricsSummary(git_diff=git_diff, numeric=numeric)


def assertion_summaries(scores_by_name: dict[str, list[float]]) -> list[AssertionSummary]:
    summaries: list[AssertionSummary] = []
    for name, scores in scores_by_name.items():
        passed = sum(1 for s in scores if s == 1)
        failed = sum(1 for s in scores if s == 0)
        summaries.append(
            AssertionSummary(
                assertion_name=name,
                total_evaluations=len(scores),
                passed=passed,
                partial=sum(1 for s in scores if 0 < s < 1),
                failed=failed,
                pass_rate=_rate(passed, len(scores)),
                avg_score=_average(scores),
            )
        )
    return summaries


@dataclass
class _EvaluatorData:
    runs: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    durations: list[int] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    metrics: list[dict[str, Any]] = field(default_factory=list)
    scores: dict[str, list[float]] = field(default_factory=dict)


def analyze_by_evaluator(records: list[ExportedResultsBundle]) -> list[EvaluatorAnalysis]:
    collected: dict[str, _EvaluatorData] = {}
    for evaluation in (e for r in records for e in r.evaluators):
        data = collected.setdefault(evaluation.evaluator, _EvaluatorData())
        data.runs += 1
        if evaluation.status == "passed":
            data.passed += 1
        elif evaluation.status == "failed":
            data.failed += 1
            data.messages.append(evaluation.message)
        else:
            data.skipped += 1
        data.durations.append(evaluation.duration_ms)
        if evaluation.metrics:
            data.metrics.append(evaluation.metrics)
        for name, score in (evaluation.assertions or {}).items():
            if _is_number(score):
                data.scores.setdefault(name, []).append(float(score))

    results = [
        EvaluatorAnalysis(
            name=name,
            run_count=data.runs,
            passed=data.passed,
            failed=data.failed,
            skipped=data.skipped,
            pass_rate=_rate(data.passed, data.runs),
            skip_rate=_rate(data.skipped, data.runs),
            avg_duration_ms=_average(data.durations),
            min_duration_ms=min(data.durations, default=0),
            max_duration_ms=max(data.durations, default=0),
            metrics_summary=metrics_summary(evaluator_name=name, collections=data.metrics),
            assertions=assertion_summaries(data.scores) or None,
            failure_patterns=failure_patterns(data.messages),
        )
        for name, data in collected.items()
    ]
    return _sort_groups(results, lambda ev: ev.name)


def week_start(day: date) -> date:
    """Monday of ``day``'s ISO week."""
    return day - timedelta(days=day.weekday())


def daily_aggregates(records: list[ExportedResultsBundle]) -> list[DailyAggregate]:
    days: dict[str, _Tally] = {}
    for record in records:
        day = record.exported_at.astimezone(UTC).date().isoformat()
        days.setdefault(day, _Tally()).add(
            passed=_passed(record), duration_ms=record.execution.duration_ms
        )
    return [
        DailyAggregate(
            date=day,
            run_count=tally.runs,
            pass_rate=_rate(tally.passed, tally.runs),
            avg_duration_ms=_rate(tally.duration, tally.runs),
        )
        for day, tally in sorted(days.items())
    ]


def weekly_aggregates(daily: list[DailyAggregate]) -> list[WeeklyAggregate]:
    """Roll daily buckets into ISO weeks, weighting each day's rates by its run count."""
    weeks: dict[str, list[float]] = {}
    for bucket in daily:
        key = week_start(date.fromisoformat(bucket.date)).isoformat()
        runs, passed, duration = weeks.setdefault(key, [0.0, 0.0, 0.0])
        weeks[key] = [
            runs + bucket.run_count,
            passed + bucket.run_count * bucket.pass_rate,
            duration + bucket.run_count * bucket.avg_duration_ms,
        ]
    return [
        WeeklyAggregate(
            week_start=key,
            run_count=int(runs),
            pass_rate=_rate(passed, runs),
            avg_duration_ms=_rate(duration, runs),
        )
        for key, (runs, passed, duration) in sorted(weeks.items())
    ]


def analyze_trends(records: list[ExportedResultsBundle]) -> TrendAnalysis:
    pass_rate: list[TrendDataPoint] = []
    duration: list[TrendDataPoint] = []
    per_test_case: dict[str, list[TrendDataPoint]] = {}
    for record in records:
        outcome = 1.0 if _passed(record) else 0.0
        pass_rate.append(TrendDataPoint(timestamp=record.exported_at, value=outcome))
        duration.append(
            TrendDataPoint(timestamp=record.exported_at, value=record.execution.duration_ms)
        )
        per_test_case.setdefault(record.test_case.name, []).append(
            TrendDataPoint(
                timestamp=record.exported_at, value=outcome, test_case=record.test_case.name
            )
        )

    daily = daily_aggregates(records)
    return TrendAnalysis(
        pass_rate_trend=pass_rate,
        duration_trend=duration,
        test_case_trends=per_test_case,
        aggregates=TrendAggregates(
            daily=daily,
            weekly=weekly_aggregates(daily) if len(daily) >= WEEKLY_MIN_DAYS else None,
        ),
    )


def _percent(rate: float) -> str:
    return f"{rate * 100:.0f}%"


def generate_insights(
    by_test_case: list[TestCaseAnalysis],
    by_evaluator: list[EvaluatorAnalysis],
    thresholds: InsightThresholds,
) -> list[Insight]:
    insights: list[Insight] = []

    for tc in by_test_case:
        if tc.run_count >= MIN_INSIGHT_RUNS and tc.overall_pass_rate < thresholds.low_pass_rate:
            insights.append(
                Insight(
                    type="recommendation",
                    severity="critical" if tc.overall_pass_rate < CRITICAL_PASS_RATE else "warning",
                    title=f'"{tc.name}" has {_percent(tc.overall_pass_rate)} pass rate',
                    description=(
                        f"This test case needs attention with only "
                        f"{_percent(tc.overall_pass_rate)} pass rate across {tc.run_count} runs."
                    ),
                    context={"test_case": tc.name},
                    data={"pass_rate": tc.overall_pass_rate, "run_count": tc.run_count},
                )
            )
        if tc.run_count >= SUSTAINED_RUNS and tc.overall_pass_rate >= SUSTAINED_PASS_RATE:
            insights.append(
                Insight(
                    type="improvement",
                    severity="info",
                    title=f'"{tc.name}" maintains {_percent(tc.overall_pass_rate)} pass rate',
                    description=f"Consistent results across {tc.run_count} runs.",
                    context={"test_case": tc.name},
                    data={"pass_rate": tc.overall_pass_rate, "run_count": tc.run_count},
                )
            )
        if tc.recent_trend == "degrading":
            insights.append(
                Insight(
                    type="regression",
                    severity="warning",
                    title=f'"{tc.name}" shows degrading trend',
                    description="Recent runs show declining pass rate for this test case.",
                    context={"test_case": tc.name},
                )
            )

    for ev in by_evaluator:
        if ev.run_count >= MIN_INSIGHT_RUNS and ev.skip_rate > thresholds.high_skip_rate:
            insights.append(
                Insight(
                    type="anomaly",
                    severity="warning",
                    title=f"{ev.name} skipped {_percent(ev.skip_rate)} of the time",
                    description=(
                        f"This evaluator was skipped in {ev.skipped} of {ev.run_count} runs. "
                        "Check its configuration and preconditions."
                    ),
                    context={"evaluator": ev.name},
                    data={
                        "skip_rate": ev.skip_rate,
                        "skipped": ev.skipped,
                        "run_count": ev.run_count,
                    },
                )
            )
        if (
            ev.run_count >= MIN_INSIGHT_RUNS
            and ev.skipped < ev.run_count * 0.5
            and ev.pass_rate < thresholds.low_pass_rate
        ):
            insights.append(
                Insight(
                    type="recommendation",
                    severity="warning",
                    title=f"{ev.name} has {_percent(ev.pass_rate)} pass rate",
                    description="Consider reviewing the evaluator criteria or agent behaviour.",
                    context={"evaluator": ev.name},
                    data={"pass_rate": ev.pass_rate, "run_count": ev.run_count},
                )
            )

    return sorted(insights, key=lambda insight: _SEVERITY_ORDER[insight.severity])
