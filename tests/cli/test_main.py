"""Tests for the agent-bench CLI commands."""

import json
from datetime import timedelta
from pathlib import Path

from typer.testing import CliRunner

from agent_bench.cli.main import app
from tests.run.bundle_factory import BASE_TIME, make_bundle, make_evaluation, make_record

runner = CliRunner()


def _write_history(path: Path) -> Path:
    records = [
        make_record(exported_at=BASE_TIME, name="add-docs", run_id="r1"),
        make_record(
            exported_at=BASE_TIME + timedelta(hours=1),
            name="add-docs",
            run_id="r2",
            evaluations=[make_evaluation(status="failed", message="too many files")],
        ),
        make_record(
            exported_at=BASE_TIME + timedelta(hours=2),
            name="fix-bug",
            agent_type="claude_code_sdk",
            run_id="r3",
        ),
    ]
    path.write_text(
        "".join(r.model_dump_json() + "\n" for r in records), encoding="utf-8"
    )
    return path


class TestAnalyze:
    """`analyze` reads history, filters it and renders the result."""

    def test_json_output(self, tmp_path: Path) -> None:
        history = _write_history(tmp_path / "history.jsonl")

        result = runner.invoke(app, ["analyze", str(history), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["metadata"]["total_records"] == 3
        assert data["summary"]["passed_runs"] == 2
        assert {tc["name"] for tc in data["by_test_case"]} == {"add-docs", "fix-bug"}

    def test_filters_are_applied_and_reported(self, tmp_path: Path) -> None:
        history = _write_history(tmp_path / "history.jsonl")

        result = runner.invoke(
            app,
            ["analyze", str(history), "--format", "json", "--agent", "command"],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["metadata"]["total_records"] == 2
        assert data["metadata"]["filters_applied"]["agent"] == "command"

    def test_table_output(self, tmp_path: Path) -> None:
        history = _write_history(tmp_path / "history.jsonl")

        result = runner.invoke(app, ["analyze", str(history)])

        assert result.exit_code == 0, result.output
        assert "add-docs" in result.stdout

    def test_invalid_format_exits_with_error(self, tmp_path: Path) -> None:
        history = _write_history(tmp_path / "history.jsonl")
        result = runner.invoke(app, ["analyze", str(history), "--format", "xml"])
        assert result.exit_code == 1
        assert "Invalid format" in result.output

    def test_invalid_status_exits_with_error(self, tmp_path: Path) -> None:
        history = _write_history(tmp_path / "history.jsonl")
        result = runner.invoke(app, ["analyze", str(history), "--status", "bogus"])
        assert result.exit_code == 1
        assert "Invalid filter" in result.output

    def test_missing_history_exits_with_error(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing.jsonl")])
        assert result.exit_code == 1
        assert "Failed to read history" in result.output


class TestReport:
    """`report` renders a saved results.json."""

    def test_renders_bundle(self, tmp_path: Path) -> None:
        path = tmp_path / "results.json"
        path.write_text(make_bundle(name="add-docs").model_dump_json(), encoding="utf-8")

        result = runner.invoke(app, ["report", str(path)])

        assert result.exit_code == 0, result.output
        assert "add-docs" in result.stdout
        assert "git-diff" in result.stdout

    def test_missing_file_exits_with_error(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["report", str(tmp_path / "results.json")])
        assert result.exit_code == 1
        assert "Failed to " in result.output


class TestRun:
    """`run` rejects bad configs before touching any workspace."""

    def test_unknown_agent_type_exits_with_error(self, tmp_path: Path) -> None:
        config = tmp_path / "config.yaml"
        config.write_text(
            "name: t\n"
            "repo: https://example.com/repo.git\n"
            "agent:\n"
            "  type: mystery-agent\n"
            "evaluators:\n"
            "  - name: git-diff\n"
            f"workspace_dir: {tmp_path / 'work'}\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["run", str(config), "--output-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "unsupported agent type 'mystery-agent'" in result.output
        assert not (tmp_path / "work").exists()

    def test_missing_config_exits_with_error(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["run", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1
        assert "Failed to " in result.output

    def test_invalid_log_format_exits_with_error(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["run", str(tmp_path / "nope.yaml"), "--log-format", "xml"]
        )
        assert result.exit_code == 1
        assert "Invalid log format" in result.output
