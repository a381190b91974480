"""FakeSynthesisObserver — records synthesis domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class SynthesisEvent:
    orchestrator_model_id: str
    reason: str = ""


class FakeSynthesisObserver:
    def __init__(self) -> None:
        self.parsed: list[SynthesisEvent] = []
        self.fell_back: list[SynthesisEvent] = []
        self.failed: list[SynthesisEvent] = []

    def synthesis_parsed(self, orchestrator_model_id: str) -> None:
        self.parsed.append(SynthesisEvent(orchestrator_model_id=orchestrator_model_id))

    def synthesis_fell_back_to_text(
        self, orchestrator_model_id: str, reason: str
    ) -> None:
        self.fell_back.append(
            SynthesisEvent(orchestrator_model_id=orchestrator_model_id, reason=reason)
        )

    def synthesis_failed(self, orchestrator_model_id: str, reason: str) -> None:
        self.failed.append(
            SynthesisEvent(orchestrator_model_id=orchestrator_model_id, reason=reason)
        )
