"""Tests for GitDiffEvaluator: pure helpers plus a real git working tree."""

import math
import os
import shutil
import subprocess
from pathlib import Path

import pytest
from pydantic import ValidationError

from agent_bench.config.domain.evaluator import EvaluatorConfig
from agent_bench.evaluation.domain.evaluator import EvaluationContext
from agent_bench.evaluation.infrastructure.errors import EvaluatorOutputError
from agent_bench.evaluation.infrastructure.git_diff import (
    PATCH_FILE,
    FileChange,
    GitDiffAssertions,
    GitDiffEvaluator,
    GitDiffSettings,
    change_entropy,
    check_assertions,
)
from agent_bench.workspace.domain.handle import WorkspaceSnapshot

_needs_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        env={
            **os.environ,
            "GIT_AUTHOR_NAME": "Test",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        },
    )


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A committed repo with two three-line files."""
    modified = tmp_path / "src-modified"
    modified.mkdir()
    _git(modified, "init", "--quiet")
    (modified / "a.txt").write_text("1\n2\n3\n")
    (modified / "b.txt").write_text("x\ny\nz\n")
    _git(modified, "add", ".")
    _git(modified, "commit", "--quiet", "-m", "base")
    return modified


def _make_context(modified: Path, config: dict[str, object] | None = None) -> EvaluationContext:
    root = modified.parent
    artifacts = root / "artifacts" / "evaluators" / "git-diff"
    artifacts.mkdir(parents=True, exist_ok=True)
    return EvaluationContext(
        workspace=WorkspaceSnapshot(
            run_key="run-test",
            modified_dir=modified,
            expected_dir=None,
            artifacts_dir=root / "artifacts",
            evaluator_artifacts_dir=root / "artifacts" / "evaluators",
        ),
        artifacts_dir=artifacts,
        config=config or {},
    )


def _make_evaluator() -> GitDiffEvaluator:
    return GitDiffEvaluator(config=EvaluatorConfig(name="git-diff"))


class TestChangeEntropy:
    """Entropy measures how evenly changed lines spread across files."""

    def test_no_changes_is_zero(self) -> None:
        assert change_entropy([]) == 0.0

    def test_single_file_is_zero(self) -> None:
        assert change_entropy([FileChange(path="a", additions=5, deletions=2)]) == 0.0

    def test_two_equal_files_is_one_bit(self) -> None:
        files = [FileChange("a", 3, 0), FileChange("b", 0, 3)]
        assert math.isclose(change_entropy(files), 1.0)

    def test_four_equal_files_is_two_bits(self) -> None:
        files = [FileChange(str(i), 1, 0) for i in range(4)]
        assert math.isclose(change_entropy(files), 2.0)


class TestCheckAssertions:
    """Only configured assertions are reported, with None meaning satisfied."""

    def test_unconfigured_assertions_are_omitted(self) -> None:
        assert check_assertions(3, 10, 2, 1.0, GitDiffAssertions()) == {}

    def test_satisfied_and_violated(self) -> None:
        outcomes = check_assertions(
            files_changed=3,
            lines_added=10,
            lines_removed=2,
            entropy=1.0,
            assertions=GitDiffAssertions(max_files_changed=5, max_lines_added=4),
        )
        assert outcomes["max_files_changed"] is None
        assert outcomes["max_lines_added"] == "lines_added (10) exceeds max_lines_added (4)"

    def test_limit_is_inclusive(self) -> None:
        outcomes = check_assertions(2, 0, 0, 0.0, GitDiffAssertions(max_files_changed=2))
        assert outcomes == {"max_files_changed": None}

    def test_entropy_bounds(self) -> None:
        outcomes = check_assertions(
            2, 2, 0, 1.0, GitDiffAssertions(min_change_entropy=1.5, max_change_entropy=0.5)
        )
        assert outcomes["min_change_entropy"] is not None
        assert outcomes["max_change_entropy"] is not None

    def test_unknown_assertion_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GitDiffSettings.model_validate({"assertions": {"max_bananas": 1}})


@_needs_git
class TestGitDiffEvaluator:
    """evaluate() reads the working tree against the base commit."""

    async def test_preconditions_require_git_dir(self, repo: Path, tmp_path: Path) -> None:
        evaluator = _make_evaluator()
        assert await evaluator.check_preconditions(_make_context(repo))

        plain = tmp_path / "other" / "src-modified"
        plain.mkdir(parents=True)
        assert not await evaluator.check_preconditions(_make_context(plain))

    async def test_no_changes_passes(self, repo: Path) -> None:
        verdict = await _make_evaluator().evaluate(_make_context(repo))
        assert verdict.status == "passed"
        assert verdict.metrics["files_changed"] == 0
        assert verdict.metrics["total_changes"] == 0
        assert verdict.assertions is None

    async def test_counts_modified_and_untracked_files(self, repo: Path) -> None:
        (repo / "a.txt").write_text("1\nTWO\n3\n")
        (repo / "new.txt").write_text("n1\nn2\n")

        verdict = await _make_evaluator().evaluate(_make_context(repo))

        metrics = verdict.metrics
        assert metrics["files_changed"] == 2
        assert metrics["lines_added"] == 3
        assert metrics["lines_removed"] == 1
        paths = {f["path"] for f in metrics["changed_files"]}
        assert paths == {"a.txt", "new.txt"}
        assert metrics["base_commit"] == "HEAD"
        assert len(metrics["current_commit"]) == 40

    async def test_deleted_file_counts_removals(self, repo: Path) -> None:
        (repo / "b.txt").unlink()
        verdict = await _make_evaluator().evaluate(_make_context(repo))
        assert verdict.metrics["lines_removed"] == 3
        assert verdict.metrics["files_changed"] == 1

    async def test_violation_fails_with_scores(self, repo: Path) -> None:
        (repo / "a.txt").write_text("changed\n")
        (repo / "b.txt").write_text("changed\n")
        config = {"assertions": {"max_files_changed": 1, "max_lines_added": 10}}

        verdict = await _make_evaluator().evaluate(_make_context(repo, config=config))

        assert verdict.status == "failed"
        assert verdict.assertions == {"max_files_changed": 0.0, "max_lines_added": 1.0}
        assert "files_changed (2) exceeds max_files_changed (1)" in verdict.message
        assert verdict.metrics["violations"] == [
            "files_changed (2) exceeds max_files_changed (1)"
        ]

    async def test_writes_patch_artifact(self, repo: Path) -> None:
        (repo / "a.txt").write_text("1\n2\n3\n4\n")
        (repo / "extra.txt").write_text("e\n")
        context = _make_context(repo)

        verdict = await _make_evaluator().evaluate(context)

        patch = (context.artifacts_dir / PATCH_FILE).read_text()
        assert "+4" in patch
        assert "# untracked: extra.txt" in patch
        assert verdict.artifacts[0].type == "patch"
        assert verdict.artifacts[0].path == str(context.artifacts_dir / PATCH_FILE)

    async def test_does_not_touch_index(self, repo: Path) -> None:
        (repo / "new.txt").write_text("n\n")
        await _make_evaluator().evaluate(_make_context(repo))
        status = subprocess.run(
            ["git", "status", "--porcelain"], cwd=repo, capture_output=True, text=True, check=True
        ).stdout
        assert "?? new.txt" in status

    async def test_bad_settings_raise_output_error(self, repo: Path) -> None:
        with pytest.raises(EvaluatorOutputError):
            await _make_evaluator().evaluate(_make_context(repo, config={"bogus": True}))
