"""Tests for cli/output rendering helpers."""

from rich.console import Console

from agent_bench.analysis.application.aggregator import analyze
from agent_bench.cli.output.analysis import render_analysis, render_analysis_json
from agent_bench.cli.output.report import format_duration, render_report, styled
from tests.run.bundle_factory import BASE_TIME, make_bundle, make_evaluation, make_record


def _console() -> Console:
    return Console(record=True, width=160, color_system=None)


class TestFormatDuration:
    """format_duration switches to minutes past sixty seconds."""

    def test_seconds(self) -> None:
        assert format_duration(5200) == "5.2s"

    def test_minutes(self) -> None:
        assert format_duration(83_400) == "1m 23.4s"


class TestStyled:
    def test_known_status(self) -> None:
        assert styled("passed") == "[bright_green]passed[/bright_green]"

    def test_unknown_status_uses_default(self) -> None:
        assert styled("weird") == "[default]weird[/default]"


class TestRenderReport:
    """render_report prints run metadata and one row per evaluator."""

    def test_includes_evaluators_and_status(self) -> None:
        bundle = make_bundle(
            evaluations=[
                make_evaluation(name="git-diff", message="2 file(s) changed"),
                make_evaluation(name="lint", status="skipped", message="no linter"),
            ]
        )
        console = _console()

        render_report(bundle=bundle, console=console)

        text = console.export_text()
        assert "add-docs" in text
        assert "git-diff" in text
        assert "lint" in text
        assert "partial" in text


class TestRenderAnalysis:
    def test_empty_result_says_no_records(self) -> None:
        console = _console()
        render_analysis(result=analyze([]), console=console)
        assert "No matching records." in console.export_text()

    def test_lists_test_cases(self) -> None:
        console = _console()
        render_analysis(result=analyze([make_record(exported_at=BASE_TIME)]), console=console)
        assert "add-docs" in console.export_text()

    def test_json_is_parseable(self) -> None:
        rendered = render_analysis_json(analyze([make_record(exported_at=BASE_TIME)]))
        assert '"total_records": 1' in rendered
