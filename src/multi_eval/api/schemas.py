"""Request and response bodies for the HTTP binding."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.envelope.domain.item import ResultItem


class _Body(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PrimaryRequest(_Body):
    model_ids: list[str]
    prompt: str
    config: GenerationConfig | None = None


class SingleRequest(_Body):
    model_id: str
    prompt: str
    config: GenerationConfig | None = None


class MultiJudgeRequest(_Body):
    judge_model_ids: list[str]
    prompt: str
    primary_outputs: list[ResultItem]
    config: GenerationConfig | None = None


class SingleJudgeRequest(_Body):
    evaluator_model_id: str
    prompt: str
    primary_outputs: list[ResultItem]
    config: GenerationConfig | None = None


class OrchestrateRequest(_Body):
    orchestrator_model_id: str
    prompt: str
    outputs: list[ResultItem]
    orchestration_prompt: str | None = None
    config: GenerationConfig | None = None


class SessionMultiJudgeRequest(_Body):
    primary_model_ids: list[str]
    judge_model_ids: list[str]
    prompt: str
    config: GenerationConfig | None = None


class SessionSingleJudgeRequest(_Body):
    primary_model_ids: list[str]
    evaluator_model_id: str
    prompt: str
    config: GenerationConfig | None = None


class SessionOrchestrateRequest(_Body):
    orchestrator_model_id: str
    orchestration_prompt: str | None = None
    run_id: str | None = None
    config: GenerationConfig | None = None


class ModelEntry(_Body):
    id: str
    display_name: str
    provider: str
