"""Dispatch and synthesis execution settings."""

from pydantic import BaseModel, Field

DEFAULT_SYNTHESIS_INSTRUCTION = "Synthesize a single best answer and explain why."


class DispatchConfig(BaseModel, frozen=True):
    timeout_seconds: float = Field(default=60.0, gt=0.0)
    max_concurrent: int | None = Field(default=None, ge=1)


class SynthesisConfig(BaseModel, frozen=True):
    max_tokens: int = Field(default=300, gt=0)
    default_instruction: str = Field(
        default=DEFAULT_SYNTHESIS_INSTRUCTION, min_length=1
    )
