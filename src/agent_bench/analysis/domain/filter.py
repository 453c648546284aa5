"""AnalysisFilter — narrows history records before they are analysed."""

import re
from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator

from agent_bench.evaluation.domain.summary import OverallStatus
from agent_bench.run.domain.bundle import ExportedResultsBundle


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """``*`` matches any run of characters; everything else is literal. Case-insensitive."""
    body = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.compile(f"^{body}$", re.IGNORECASE)


class AnalysisFilter(BaseModel, frozen=True):
    test_case: str | None = None
    agent: str | None = None
    evaluator: str | None = None
    since: datetime | None = None
    until: datetime | None = None
    status: list[OverallStatus] = Field(default_factory=list)
    limit: int | None = Field(default=None, ge=1)

    @field_validator("since", "until")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def matches(self, record: ExportedResultsBundle) -> bool:
        if self.test_case is not None and not glob_to_regex(self.test_case).match(
            record.test_case.name
        ):
            return False
        if self.agent is not None and record.agent.type != self.agent:
            return False
        if self.evaluator is not None and not any(
            e.evaluator == self.evaluator for e in record.evaluators
        ):
            return False
        if self.since is not None and record.exported_at < self.since:
            return False
        if self.until is not None and record.exported_at > self.until:
            return False
        if self.status and record.summary.overall_status not in self.status:
            return False
        return True

    def apply(self, records: list[ExportedResultsBundle]) -> list[ExportedResultsBundle]:
        """Keep matching records; ``limit`` keeps the last N in file order."""
        kept = [r for r in records if self.matches(r)]
        if self.limit is not None:
            kept = kept[-self.limit :]
        return kept

    def describe(self) -> dict[str, str]:
        """Applied filters as display strings, for analysis metadata."""
        applied: dict[str, str] = {}
        for key, value in self.model_dump(exclude_defaults=True).items():
            if isinstance(value, datetime):
                applied[key] = value.isoformat()
            elif isinstance(value, list):
                applied[key] = ",".join(str(v) for v in value)
            else:
                applied[key] = str(value)
        return applied
