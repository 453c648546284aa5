"""RepositoryCloner port — materializes a repository reference on disk."""

from pathlib import Path
from typing import Protocol


class RepositoryCloner(Protocol):
    async def clone(
        self,
        repo: str,
        destination: Path,
        branch: str | None,
        commit: str | None,
        timeout_seconds: float,
    ) -> str:
        """Clone ``repo`` into ``destination`` and return the checked-out commit SHA.

        Raises:
            CloneTimeoutError: if the clone exceeds ``timeout_seconds``.
            CloneError: on any git failure (network, auth, unknown ref).
        """
        ...
