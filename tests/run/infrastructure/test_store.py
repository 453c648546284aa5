"""Tests for ResultsStore and load_bundle."""

import json
from pathlib import Path

import pytest

from agent_bench.run.infrastructure.errors import ResultsReadError, ResultsWriteError
from agent_bench.run.infrastructure.store import (
    RESULTS_FILE,
    ResultsStore,
    load_bundle,
    write_json_atomic,
)
from tests.run.bundle_factory import make_bundle


def _make_artifacts(tmp_path: Path) -> Path:
    artifacts = tmp_path / "ws" / "artifacts"
    (artifacts / "evaluators" / "git-diff").mkdir(parents=True)
    (artifacts / "agent-stdout.log").write_text("out")
    (artifacts / "evaluators" / "git-diff" / "git-diff.patch").write_text("diff")
    return artifacts


class TestSave:
    """save writes results.json locally and copies artifacts to the output dir."""

    async def test_without_output_dir_writes_locally(self, tmp_path: Path) -> None:
        artifacts = _make_artifacts(tmp_path)
        path = await ResultsStore().save(make_bundle(), artifacts_dir=artifacts, run_key="run-a")
        assert path == artifacts / RESULTS_FILE
        assert json.loads(path.read_text())["run_id"] == "run-1"

    async def test_with_output_dir_copies_artifacts(self, tmp_path: Path) -> None:
        artifacts = _make_artifacts(tmp_path)
        output = tmp_path / "results"

        path = await ResultsStore(output_dir=output).save(
            make_bundle(), artifacts_dir=artifacts, run_key="run-a"
        )

        assert path == output / "run-a" / RESULTS_FILE
        assert (output / "run-a" / "agent-stdout.log").read_text() == "out"
        assert (output / "run-a" / "evaluators" / "git-diff" / "git-diff.patch").exists()
        assert (artifacts / RESULTS_FILE).exists()

    async def test_write_failure_raises_results_write_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        with pytest.raises(ResultsWriteError):
            await ResultsStore().save(make_bundle(), artifacts_dir=blocker, run_key="run-a")


class TestSaveDetached:
    """save_detached persists bundles for runs without a workspace."""

    async def test_without_output_dir_returns_none(self) -> None:
        assert await ResultsStore().save_detached(make_bundle(), run_key="run-a") is None

    async def test_writes_under_run_key(self, tmp_path: Path) -> None:
        path = await ResultsStore(output_dir=tmp_path).save_detached(
            make_bundle(), run_key="run-a"
        )
        assert path == tmp_path / "run-a" / RESULTS_FILE
        assert path.exists()


class TestLoadBundle:
    """load_bundle round-trips a saved bundle and rejects bad files."""

    async def test_loads_saved_bundle(self, tmp_path: Path) -> None:
        bundle = make_bundle()
        path = await ResultsStore(output_dir=tmp_path).save_detached(bundle, run_key="run-a")
        assert path is not None
        assert load_bundle(path) == bundle

    def test_manifest_lists_only_collected_artifacts(self, tmp_path: Path) -> None:
        payload = json.loads(make_bundle().model_dump_json())
        assert set(payload["artifacts"]) == {
            "agent_log",
            "agent_stdout",
            "agent_stderr",
            "evaluator_artifacts",
        }

        payload["artifacts"]["reports"] = ["old-report.html"]
        path = tmp_path / "results.json"
        path.write_text(json.dumps(payload))
        assert "reports" not in load_bundle(path).artifacts.model_dump()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ResultsReadError):
            load_bundle(tmp_path / "absent.json")

    def test_invalid_content(self, tmp_path: Path) -> None:
        path = tmp_path / "results.json"
        path.write_text('{"run_id": 3}')
        with pytest.raises(ResultsReadError, match="Failed to read results"):
            load_bundle(path)


class TestWriteJsonAtomic:
    """Atomic writes leave no temp files behind."""

    def test_replaces_existing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out.json"
        path.write_text("old")
        write_json_atomic(path, '{"new": true}')
        assert path.read_text() == '{"new": true}'
        assert [p.name for p in tmp_path.iterdir()] == ["out.json"]
