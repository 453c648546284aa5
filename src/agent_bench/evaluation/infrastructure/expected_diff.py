"""ExpectedDiffEvaluator — scores how closely the agent's tree matches a reference tree."""

import asyncio
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.core.clock import utc_now
from agent_bench.evaluation.domain.evaluator import EvaluationContext
from agent_bench.evaluation.domain.result import EvaluationArtifact, EvaluatorVerdict
from agent_bench.evaluation.infrastructure.errors import EvaluatorOutputError

REPORT_FILE = "expected-diff-report.json"

type FileStatus = Literal["matched", "changed", "added", "removed"]


class ExpectedDiffSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    threshold: float = Field(default=0.8, ge=0.0, le=1.0)


@dataclass(frozen=True)
class FileComparison:
    path: str
    similarity: float
    status: FileStatus


class _ReportSummary(BaseModel):
    aggregate_similarity: float
    threshold: float
    passed: bool
    files_matched: int
    files_changed: int
    files_added: int
    files_removed: int


class _ReportEntry(BaseModel):
    path: str
    similarity: float
    status: FileStatus


class _Report(BaseModel):
    summary: _ReportSummary
    file_details: list[_ReportEntry]
    timestamp: datetime


def similarity(a: str, b: str) -> float:
    """1 - line edit distance / longer line count; 1.0 for identical text."""
    if a == b:
        return 1.0
    left, right = a.splitlines(), b.splitlines()
    longest = max(len(left), len(right))
    if longest == 0:
        return 1.0
    return 1.0 - _edit_distance(left, right) / longest


def _edit_distance(left: list[str], right: list[str]) -> int:
    # Shared head and tail lines cost nothing; only the middle needs the table.
    start = 0
    while start < len(left) and start < len(right) and left[start] == right[start]:
        start += 1
    end_l, end_r = len(left), len(right)
    while end_l > start and end_r > start and left[end_l - 1] == right[end_r - 1]:
        end_l -= 1
        end_r -= 1
    left, right = left[start:end_l], right[start:end_r]
    if not left or not right:
        return len(left) + len(right)

    previous = list(range(len(right) + 1))
    for i, line in enumerate(left, start=1):
        current = [i]
        for j, other in enumerate(right, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (line != other),
                )
            )
        previous = current
    return previous[-1]


def list_files(root: Path) -> set[str]:
    """Relative POSIX paths of every regular file under ``root``, skipping ``.git``."""
    files: set[str] = set()
    for directory, dirnames, filenames in root.walk():
        dirnames[:] = [name for name in dirnames if name != ".git"]
        for name in filenames:
            path = directory / name
            if path.is_file():
                files.add(path.relative_to(root).as_posix())
    return files


def compare_trees(modified: Path, expected: Path) -> list[FileComparison]:
    """Per-file comparison of ``modified`` against ``expected``, sorted by path.

    An unreadable file counts as changed with similarity 0.
    """
    modified_files = list_files(modified)
    expected_files = list_files(expected)
    comparisons: list[FileComparison] = []
    for path in sorted(modified_files | expected_files):
        if path not in expected_files:
            comparisons.append(FileComparison(path=path, similarity=0.0, status="added"))
        elif path not in modified_files:
            comparisons.append(FileComparison(path=path, similarity=0.0, status="removed"))
        else:
            try:
                score = similarity(_read(modified / path), _read(expected / path))
            except OSError:
                score = 0.0
            comparisons.append(
                FileComparison(
                    path=path,
                    similarity=score,
                    status="matched" if score == 1.0 else "changed",
                )
            )
    return comparisons


def aggregate_similarity(comparisons: list[FileComparison]) -> float:
    """Mean similarity of files present in both trees, less a structural penalty.

    The penalty is the share of all files that exist on only one side. Two
    empty trees are identical; trees with nothing in common score 0.
    """
    if not comparisons:
        return 1.0
    shared = [c.similarity for c in comparisons if c.status in ("matched", "changed")]
    if not shared:
        return 0.0
    one_sided = sum(1 for c in comparisons if c.status in ("added", "removed"))
    score = sum(shared) / len(shared) - one_sided / len(comparisons)
    return min(1.0, max(0.0, score))


class ExpectedDiffEvaluator:
    """Compares ``src-modified`` file by file with the expected reference tree.

    Passes when the aggregate similarity reaches ``threshold`` (default 0.8).
    Skipped when the run has no expected reference.
    """

    evaluator_type = "expected-diff"
    description = (
        "Compares the agent's output with the expected reference: per-file "
        "similarity plus an aggregate score checked against a threshold."
    )

    def __init__(self, config: EvaluatorConfig) -> None:
        self._config = config

    async def check_preconditions(self, context: EvaluationContext) -> bool:
        expected = context.expected_dir
        return expected is not None and expected.is_dir() and context.modified_dir.is_dir()

    async def evaluate(self, context: EvaluationContext) -> EvaluatorVerdict:
        try:
            settings = ExpectedDiffSettings.model_validate(context.config)
        except ValidationError as exc:
            raise EvaluatorOutputError(evaluator=self._config.name, reason=str(exc)) from exc
        if context.expected_dir is None:
            raise EvaluatorOutputError(
                evaluator=self._config.name, reason="no expected reference in workspace"
            )

        comparisons = await asyncio.to_thread(
            compare_trees, context.modified_dir, context.expected_dir
        )
        score = aggregate_similarity(comparisons)
        passed = score >= settings.threshold
        counts = {
            status: sum(1 for c in comparisons if c.status == status)
            for status in ("matched", "changed", "added", "removed")
        }

        report = _Report(
            summary=_ReportSummary(
                aggregate_similarity=score,
                threshold=settings.threshold,
                passed=passed,
                files_matched=counts["matched"],
                files_changed=counts["changed"],
                files_added=counts["added"],
                files_removed=counts["removed"],
            ),
            file_details=[
                _ReportEntry(path=c.path, similarity=c.similarity, status=c.status)
                for c in comparisons
            ],
            timestamp=utc_now(),
        )
        report_path = context.artifacts_dir / REPORT_FILE
        await asyncio.to_thread(_write_report, report_path, report)

        message = (
            f"Similarity: {score:.1%} (threshold: {settings.threshold:.0%}) | "
            f"Files: {counts['matched']} matched, {counts['changed']} changed | "
            f"{counts['added']} added | {counts['removed']} removed"
        )
        return EvaluatorVerdict(
            status="passed" if passed else "failed",
            metrics={
                "aggregate_similarity": score,
                "threshold": settings.threshold,
                "files_matched": counts["matched"],
                "files_changed": counts["changed"],
                "files_added": counts["added"],
                "files_removed": counts["removed"],
                "file_similarities": [
                    {"path": c.path, "similarity": c.similarity, "status": c.status}
                    for c in comparisons
                ],
            },
            message=message,
            assertions={"threshold": 1.0 if passed else 0.0},
            artifacts=[
                EvaluationArtifact(
                    type="diff-report",
                    path=str(report_path),
                    description="Per-file similarity against the expected reference",
                )
            ],
        )


def _read(path: Path) -> str:
    return path.read_bytes().decode("utf-8", errors="replace")


def _write_report(report_path: Path, report: _Report) -> None:
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
