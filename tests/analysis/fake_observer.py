"""FakeAnalysisObserver — records analysis domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LineSkippedEvent:
    line_number: int
    reason: str


@dataclass(frozen=True)
class ReadCompletedEvent:
    records: int
    skipped: int


@dataclass(frozen=True)
class AnalysisCompletedEvent:
    total_records: int
    insights: int


class FakeAnalysisObserver:
    """Records all emitted analysis events as typed frozen dataclasses."""

    def __init__(self) -> None:
        self.read_started: list[str] = []
        self.skipped_lines: list[LineSkippedEvent] = []
        self.read_completed: list[ReadCompletedEvent] = []
        self.analyses: list[AnalysisCompletedEvent] = []

    def history_read_started(self, path: str) -> None:
        self.read_started.append(path)

    def history_line_skipped(self, path: str, line_number: int, reason: str) -> None:
        self.skipped_lines.append(LineSkippedEvent(line_number=line_number, reason=reason))

    def history_read_completed(self, path: str, records: int, skipped: int) -> None:
        self.read_completed.append(ReadCompletedEvent(records=records, skipped=skipped))

    def analysis_completed(self, total_records: int, insights: int) -> None:
        self.analyses.append(
            AnalysisCompletedEvent(total_records=total_records, insights=insights)
        )
