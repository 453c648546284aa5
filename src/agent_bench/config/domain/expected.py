"""Expected reference model — the known-good state evaluators may compare against."""

from typing import Literal

from pydantic import BaseModel, Field

type ExpectedKind = Literal["branch", "dataset", "path"]


class ExpectedReference(BaseModel, frozen=True):
    kind: ExpectedKind
    identifier: str = Field(min_length=1)
