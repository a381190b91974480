"""Top-level EngineConfig aggregate: the root configuration object."""

from pydantic import BaseModel, Field

from multi_eval.config.domain.dispatch import DispatchConfig, SynthesisConfig
from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.config.domain.model import ModelConfig

type ModelId = str


class EngineConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a multi-eval engine instance."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    models: dict[ModelId, ModelConfig] = Field(min_length=1)
    dispatch: DispatchConfig = DispatchConfig()
    generation: GenerationConfig = GenerationConfig()
    synthesis: SynthesisConfig = SynthesisConfig()
