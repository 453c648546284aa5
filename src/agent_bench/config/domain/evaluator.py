"""Evaluator configuration model."""

from typing import Any

from pydantic import BaseModel, Field


class EvaluatorConfig(BaseModel, frozen=True):
    """One configured evaluator.

    ``name`` identifies the result slot; ``type`` selects the registry entry and
    defaults to ``name`` so that ``- name: git-diff`` is enough for built-ins.
    """

    name: str = Field(min_length=1)
    type: str | None = None
    config: dict[str, Any] = Field(default_factory=dict)

    @property
    def registry_key(self) -> str:
        return self.type or self.name
