"""GitCloner — RepositoryCloner backed by the git CLI in a subprocess."""

import asyncio
import os
import subprocess
from pathlib import Path

from agent_bench.workspace.infrastructure.errors import CloneError, CloneTimeoutError


class GitCloner:
    """Clones repositories with ``git`` and reports the resolved commit.

    Branch-only references are cloned shallow. A pinned commit needs history,
    so those clones are full and followed by a detached checkout.
    Every git invocation runs with an explicit ``cwd`` inside the destination's
    parent and never touches the caller's working directory, so a ``repo`` that
    names an existing local path is made absolute against the process directory
    first.
    """

    def __init__(self, git_executable: str = "git") -> None:
        self._git = git_executable

    async def clone(
        self,
        repo: str,
        destination: Path,
        branch: str | None,
        commit: str | None,
        timeout_seconds: float,
    ) -> str:
        source = resolve_source(repo)
        try:
            async with asyncio.timeout(timeout_seconds):
                await self._run(
                    self._clone_args(
                        repo=source, destination=destination, branch=branch, commit=commit
                    ),
                    cwd=destination.parent,
                    repo=repo,
                )
                if commit is not None:
                    await self._run(
                        [self._git, "checkout", "--detach", commit],
                        cwd=destination,
                        repo=repo,
                    )
                return await self._run(
                    [self._git, "rev-parse", "HEAD"], cwd=destination, repo=repo
                )
        except TimeoutError as exc:
            raise CloneTimeoutError(source=repo, timeout_seconds=timeout_seconds) from exc

    def _clone_args(
        self, repo: str, destination: Path, branch: str | None, commit: str | None
    ) -> list[str]:
        args = [self._git, "clone", "--quiet"]
        if commit is None:
            args += ["--depth", "1"]
        if branch is not None:
            args += ["--branch", branch, "--single-branch"]
        return [*args, repo, str(destination)]

    async def _run(self, args: list[str], cwd: Path, repo: str) -> str:
        """Run one git command and return its stripped stdout.

        The child is killed if the surrounding timeout cancels this coroutine.
        """
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                cwd=cwd,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise CloneError(repo=repo, reason=f"git executable not found: {args[0]}") from exc

        try:
            stdout_bytes, stderr_bytes = await process.communicate()
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        if process.returncode != 0:
            stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
            raise CloneError(
                repo=repo,
                reason=f"'{' '.join(args[1:3])}' exited {process.returncode}: {stderr}",
            )
        return stdout_bytes.decode("utf-8", errors="replace").strip()


def resolve_source(repo: str) -> str:
    """Absolute path for a local repository; URLs and unknown paths pass through."""
    local = Path(repo).expanduser()
    if local.exists():
        return str(local.resolve())
    return repo
