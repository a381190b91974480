"""FakeProviderObserver — records provider domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InvocationStartedEvent:
    model_id: str
    provider_model: str
    kind: str


@dataclass(frozen=True)
class InvocationCompletedEvent:
    model_id: str
    latency_ms: int
    output_chars: int


@dataclass(frozen=True)
class InvocationFailedEvent:
    model_id: str
    latency_ms: int
    reason: str


class FakeProviderObserver:
    """Records all emitted provider events as typed frozen dataclasses."""

    def __init__(self) -> None:
        self.started: list[InvocationStartedEvent] = []
        self.completed: list[InvocationCompletedEvent] = []
        self.failed: list[InvocationFailedEvent] = []

    def provider_invocation_started(
        self, model_id: str, provider_model: str, kind: str
    ) -> None:
        self.started.append(
            InvocationStartedEvent(
                model_id=model_id, provider_model=provider_model, kind=kind
            )
        )

    def provider_invocation_completed(
        self, model_id: str, latency_ms: int, output_chars: int
    ) -> None:
        self.completed.append(
            InvocationCompletedEvent(
                model_id=model_id, latency_ms=latency_ms, output_chars=output_chars
            )
        )

    def provider_invocation_failed(
        self, model_id: str, latency_ms: int, reason: str
    ) -> None:
        self.failed.append(
            InvocationFailedEvent(
                model_id=model_id, latency_ms=latency_ms, reason=reason
            )
        )
