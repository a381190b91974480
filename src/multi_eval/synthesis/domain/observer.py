"""Observer port for the synthesis domain."""

from typing import Protocol


class SynthesisObserver(Protocol):
    def synthesis_parsed(self, orchestrator_model_id: str) -> None: ...

    def synthesis_fell_back_to_text(
        self, orchestrator_model_id: str, reason: str
    ) -> None: ...

    def synthesis_failed(self, orchestrator_model_id: str, reason: str) -> None: ...
