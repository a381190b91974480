"""ProviderAdapter Protocol: uniform interface to one generative-model backend."""

from typing import Protocol

from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.envelope.domain.item import ResultItem, ResultKind


class ProviderAdapter(Protocol):
    """Structural interface satisfied by any backend adapter.

    invoke() never raises: transport errors, timeouts and malformed responses
    come back as a ResultItem with ``error`` set. Implementations must hold no
    mutable state shared across concurrent invocations.
    """

    async def invoke(
        self,
        model_id: str,
        prompt: str,
        config: GenerationConfig,
        kind: ResultKind = ResultKind.MODEL_OUTPUT,
        instructions: str | None = None,
        json_output: bool = False,
    ) -> ResultItem: ...
