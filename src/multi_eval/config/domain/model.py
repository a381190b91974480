"""Model configuration: one registered backend per model identifier."""

from pydantic import BaseModel, Field


class ModelConfig(BaseModel, frozen=True):
    type: str = Field(default="litellm", min_length=1)
    model: str = Field(min_length=1)
    display_name: str = ""
    provider: str = ""
    api_base: str | None = None
    api_key: str | None = None
