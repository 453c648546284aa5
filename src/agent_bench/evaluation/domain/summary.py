"""Run summary — counts evaluator outcomes and derives the overall status."""

from typing import Literal

from pydantic import BaseModel

from agent_bench.evaluation.domain.result import EvaluationResult

type OverallStatus = Literal["passed", "failed", "partial"]


class Summary(BaseModel, frozen=True):
    total_evaluators: int
    passed: int
    failed: int
    skipped: int
    overall_status: OverallStatus


def derive_overall_status(passed: int, failed: int, skipped: int) -> OverallStatus:
    """Apply the overall-status rule.

    No evaluators, or any failure, is ``failed``. All passed is ``passed``.
    Some skipped alongside at least one pass is ``partial``. Everything
    skipped means nothing was actually checked, so it is ``failed``.
    """
    total = passed + failed + skipped
    if total == 0 or failed > 0:
        return "failed"
    if passed == total:
        return "passed"
    if passed > 0:
        return "partial"
    return "failed"


def summarize(results: list[EvaluationResult]) -> Summary:
    passed = sum(1 for r in results if r.status == "passed")
    failed = sum(1 for r in results if r.status == "failed")
    skipped = sum(1 for r in results if r.status == "skipped")
    return Summary(
        total_evaluators=len(results),
        passed=passed,
        failed=failed,
        skipped=skipped,
        overall_status=derive_overall_status(passed=passed, failed=failed, skipped=skipped),
    )
