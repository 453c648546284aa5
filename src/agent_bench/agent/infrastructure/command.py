"""CommandAgentAdapter — runs an arbitrary agent CLI inside the workspace."""

import asyncio
import os
import shlex
import shutil
import subprocess
import time
from pathlib import Path

from agent_bench.agent.domain.adapter import AgentContext
from agent_bench.agent.domain.log import AgentTurn, NormalizedLog
from agent_bench.agent.domain.result import AgentProcessResult, AgentStatus
from agent_bench.agent.infrastructure.errors import AgentInvocationError
from agent_bench.agent.infrastructure.normalize import build_normalized_log
from agent_bench.config.domain.agent import AgentConfig
from agent_bench.core.clock import elapsed_ms

PROMPT_PLACEHOLDER = "{prompt}"
PROMPT_ENV_VAR = "AGENT_BENCH_PROMPT"


class CommandAgentAdapter:
    """Adapter for any agent exposed as a command line.

    Config keys (under ``agent.config``):
        command: list of argv strings, or one shell-quoted string. Occurrences
            of ``{prompt}`` are replaced with the prompt.
        prompt: task text; also exported as ``AGENT_BENCH_PROMPT``.
        env: extra environment variables for the child.
    """

    agent_type = "command"

    def __init__(self, config: AgentConfig) -> None:
        self._config = config

    async def check_availability(self) -> bool:
        argv = self._argv(prompt="")
        if not argv:
            return False
        executable = argv[0]
        if os.sep in executable:
            return Path(executable).is_file() and os.access(executable, os.X_OK)
        return shutil.which(executable) is not None

    async def execute(self, context: AgentContext) -> AgentProcessResult:
        """Run the command with ``cwd`` set to the workspace.

        Raises:
            AgentInvocationError: if no command is configured or it cannot be started.
        """
        argv = self._argv(prompt=context.prompt)
        if not argv:
            raise AgentInvocationError(reason="agent.config.command is empty")

        extra_env = {str(k): str(v) for k, v in (self._config.config.get("env") or {}).items()}
        env = {**os.environ, **extra_env, PROMPT_ENV_VAR: context.prompt}
        started_at = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=context.workspace_dir,
                env=env,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise AgentInvocationError(reason=f"cannot start '{argv[0]}': {exc}") from exc

        try:
            stdout_bytes, stderr_bytes = await process.communicate()
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        exit_code = process.returncode if process.returncode is not None else -1
        stderr = stderr_bytes.decode("utf-8", errors="replace")
        return AgentProcessResult(
            exit_code=exit_code,
            stdout=stdout_bytes.decode("utf-8", errors="replace"),
            stderr=stderr,
            duration_ms=elapsed_ms(started_at),
            model=self._config.model,
            errors=[stderr.strip()] if exit_code != 0 and stderr.strip() else [],
        )

    def normalize_log(
        self,
        raw: AgentProcessResult,
        context: AgentContext,
        status: AgentStatus,
    ) -> NormalizedLog:
        """Treat the whole of stdout as one assistant turn."""
        turns = raw.turns
        if not turns and raw.stdout.strip():
            turns = [AgentTurn(turn_idx=0, role="assistant", text=raw.stdout.strip())]
        return build_normalized_log(
            agent_type=self.agent_type,
            raw=raw.model_copy(update={"turns": turns}),
            context=context,
            status=status,
        )

    def _argv(self, prompt: str) -> list[str]:
        command = self._config.config.get("command")
        if command is None:
            return []
        parts = shlex.split(command) if isinstance(command, str) else [str(p) for p in command]
        return [part.replace(PROMPT_PLACEHOLDER, prompt) for part in parts]
