"""JSONL history reader — parses the append-only history log line by line."""

import json
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from agent_bench.analysis.domain.filter import AnalysisFilter
from agent_bench.analysis.domain.observer import AnalysisObserver
from agent_bench.analysis.infrastructure.errors import HistoryReadError
from agent_bench.run.domain.bundle import ExportedResultsBundle


@dataclass(frozen=True)
class ParsedLine:
    line_number: int
    record: ExportedResultsBundle


@dataclass(frozen=True)
class SkippedLine:
    line_number: int
    reason: str
    is_json: bool


type HistoryLine = ParsedLine | SkippedLine


def parse_line(line: str, line_number: int) -> HistoryLine:
    """Parse one history line; problems become a SkippedLine, never an exception."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        return SkippedLine(line_number=line_number, reason=f"invalid JSON: {exc}", is_json=False)
    try:
        record = ExportedResultsBundle.model_validate(data)
    except ValidationError as exc:
        return SkippedLine(
            line_number=line_number,
            reason=f"invalid record: {exc.error_count()} validation error(s)",
            is_json=True,
        )
    return ParsedLine(line_number=line_number, record=record)


def iter_history(path: Path) -> Iterator[HistoryLine]:
    """Lazily yield one ParsedLine or SkippedLine per non-blank line of ``path``.

    Raises:
        HistoryReadError: if the file is missing or is not UTF-8 text.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            for line_number, line in enumerate(fh, start=1):
                if line.strip():
                    yield parse_line(line=line, line_number=line_number)
    except FileNotFoundError as exc:
        raise HistoryReadError(path=path, reason="file not found") from exc
    except UnicodeDecodeError as exc:
        raise HistoryReadError(path=path, reason="file is not UTF-8 text") from exc
    except OSError as exc:
        raise HistoryReadError(path=path, reason=str(exc)) from exc


class JsonlHistoryReader:
    """Reads a history log, applies a filter, and reports skipped lines.

    Invalid or truncated lines are skipped and counted. The read fails only
    when the file has content but not a single line of it is JSON.
    """

    def __init__(self, observer: AnalysisObserver) -> None:
        self._observer = observer

    def read(
        self, path: Path, history_filter: AnalysisFilter | None = None
    ) -> tuple[list[ExportedResultsBundle], int]:
        """Return the matching records in file order and the number of skipped lines.

        Raises:
            HistoryReadError: if the file cannot be read or contains no JSON lines.
        """
        path_str = str(path)
        self._observer.history_read_started(path=path_str)

        records: list[ExportedResultsBundle] = []
        skipped = 0
        json_lines = 0
        for entry in iter_history(path):
            if isinstance(entry, SkippedLine):
                skipped += 1
                json_lines += int(entry.is_json)
                self._observer.history_line_skipped(
                    path=path_str, line_number=entry.line_number, reason=entry.reason
                )
            else:
                json_lines += 1
                records.append(entry.record)

        if skipped and json_lines == 0:
            raise HistoryReadError(path=path, reason="no line contains JSON")

        if history_filter is not None:
            records = history_filter.apply(records)
        self._observer.history_read_completed(
            path=path_str, records=len(records), skipped=skipped
        )
        return records, skipped
