"""Envelope: the uniform wrapper returned by every pipeline phase."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from multi_eval.envelope.domain.item import ResultItem


class Phase(StrEnum):
    PRIMARY = "primary"
    SINGLE = "single"
    JUDGE_MULTI = "judge_multi"
    JUDGE_SINGLE = "judge_single"
    ORCHESTRATE = "orchestrate"


class Envelope(BaseModel):
    """Items are ordered to match the model list the caller submitted."""

    model_config = ConfigDict(frozen=True)

    phase: Phase
    items: list[ResultItem]
    meta: dict[str, Any] | None = None

    @property
    def model_ids(self) -> list[str]:
        return [item.model_id for item in self.items]

    @property
    def failed(self) -> list[ResultItem]:
        return [item for item in self.items if not item.ok]
