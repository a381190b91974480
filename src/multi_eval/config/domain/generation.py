"""GenerationConfig: sampling settings shared by every adapter in one dispatch pass."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GenerationConfig(BaseModel):
    """Immutable per-call generation settings.

    One instance is reused across all adapters of a Dispatcher pass so that
    outputs are produced under identical conditions.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=2000, gt=0)
    include_system_instruction: bool = False
    system_prompt: str = ""

    def with_max_tokens(self, max_tokens: int) -> "GenerationConfig":
        """Return a copy with max_tokens replaced."""
        return self.model_copy(update={"max_tokens": max_tokens})

    @property
    def effective_system_prompt(self) -> str | None:
        """The system prompt to send, or None when disabled or blank."""
        if not self.include_system_instruction:
            return None
        stripped = self.system_prompt.strip()
        return stripped or None
