"""Synthesis: the orchestrator's merged answer and its rationale."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Synthesis(BaseModel):
    """Surrounding whitespace is stripped, so a blank answer fails validation."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    final_answer: str = Field(min_length=1)
    rationale: str = ""
