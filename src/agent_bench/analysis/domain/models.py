"""AnalysisResult and its parts — a derived, read-only view over run history."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

type TrendDirection = Literal["improving", "stable", "degrading", "insufficient_data"]
type InsightType = Literal["regression", "improvement", "anomaly", "recommendation"]
type InsightSeverity = Literal["critical", "warning", "info"]


class InsightThresholds(BaseModel, frozen=True):
    low_pass_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    high_skip_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    regression_delta: float = Field(default=0.2, ge=0.0, le=1.0)


class DateRange(BaseModel, frozen=True):
    earliest: datetime | None = None
    latest: datetime | None = None


class AnalysisMetadata(BaseModel, frozen=True):
    source: str
    total_records: int
    skipped_records: int = 0
    date_range: DateRange
    filters_applied: dict[str, str] = Field(default_factory=dict)
    generated_at: datetime
    harness_version: str


class EvaluatorStats(BaseModel, frozen=True):
    total_evaluations: int
    passed: int
    failed: int
    skipped: int
    pass_rate: float


class AgentStats(BaseModel, frozen=True):
    successful_executions: int
    failed_executions: int
    timeout_executions: int
    success_rate: float


class OverallSummary(BaseModel, frozen=True):
    total_runs: int
    passed_runs: int
    failed_runs: int
    partial_runs: int
    pass_rate: float
    avg_duration_ms: float
    total_duration_ms: int
    evaluator_stats: EvaluatorStats
    agent_stats: AgentStats


class GroupStats(BaseModel, frozen=True):
    """Run count, pass rate and mean duration for one member of a breakdown."""

    name: str
    run_count: int
    pass_rate: float
    avg_duration_ms: float | None = None


class LastRun(BaseModel, frozen=True):
    timestamp: datetime
    status: str
    duration_ms: int


class TestCaseAnalysis(BaseModel, frozen=True):
    __test__ = False  # not a pytest test class

    name: str
    description: str
    repo: str
    run_count: int
    overall_pass_rate: float
    evaluator_pass_rate: float
    avg_duration_ms: float
    min_duration_ms: int
    max_duration_ms: int
    agents_used: list[GroupStats]
    evaluators: list[GroupStats]
    recent_trend: TrendDirection
    last_run: LastRun


class AgentAnalysis(BaseModel, frozen=True):
    type: str
    run_count: int
    success_rate: float
    timeout_count: int
    avg_exit_code: float
    avg_duration_ms: float
    min_duration_ms: int
    max_duration_ms: int
    test_cases: list[GroupStats]
    evaluator_performance: list[GroupStats]


class FailurePattern(BaseModel, frozen=True):
    pattern: str
    count: int
    example_message: str


class AssertionSummary(BaseModel, frozen=True):
    assertion_name: str
    total_evaluations: int
    passed: int
    partial: int
    failed: int
    pass_rate: float
    avg_score: float


class GitDiffMetricsSummary(BaseModel, frozen=True):
    avg_files_changed: float
    avg_lines_added: float
    avg_lines_removed: float
    max_files_changed: int
    max_lines_changed: int


class NumericMetricSummary(BaseModel, frozen=True):
    avg: float
    min: float
    max: float
    count: int


class EvaluatorMetricsSummary(BaseModel, frozen=True):
    git_diff: GitDiffMetricsSummary | None = None
    numeric: dict[str, NumericMetricSummary] = Field(default_factory=dict)


class EvaluatorAnalysis(BaseModel, frozen=True):
    name: str
    run_count: int
    passed: int
    failed: int
    skipped: int
    pass_rate: float
    skip_rate: float
    avg_duration_ms: float
    min_duration_ms: int
    max_duration_ms: int
    metrics_summary: EvaluatorMetricsSummary
    assertions: list[AssertionSummary] | None = None
    failure_patterns: list[FailurePattern]


class TrendDataPoint(BaseModel, frozen=True):
    timestamp: datetime
    value: float
    test_case: str | None = None


class DailyAggregate(BaseModel, frozen=True):
    date: str
    run_count: int
    pass_rate: float
    avg_duration_ms: float


class WeeklyAggregate(BaseModel, frozen=True):
    """Rolled up from daily buckets weighted by run count, so rates are approximate."""

    week_start: str
    run_count: int
    pass_rate: float
    avg_duration_ms: float


class TrendAggregates(BaseModel, frozen=True):
    daily: list[DailyAggregate]
    weekly: list[WeeklyAggregate] | None = None


class TrendAnalysis(BaseModel, frozen=True):
    pass_rate_trend: list[TrendDataPoint]
    duration_trend: list[TrendDataPoint]
    test_case_trends: dict[str, list[TrendDataPoint]]
    aggregates: TrendAggregates


class Insight(BaseModel, frozen=True):
    type: InsightType
    severity: InsightSeverity
    title: str
    description: str
    context: dict[str, str] = Field(default_factory=dict)
    data: dict[str, Any] | None = None


class AnalysisResult(BaseModel, frozen=True):
    metadata: AnalysisMetadata
    summary: OverallSummary
    by_test_case: list[TestCaseAnalysis]
    by_agent: list[AgentAnalysis]
    by_evaluator: list[EvaluatorAnalysis]
    trends: TrendAnalysis
    insights: list[Insight]
