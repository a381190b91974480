"""ProviderObserver port: domain events emitted during adapter invocations."""

from typing import Protocol


class ProviderObserver(Protocol):
    """Observer port for provider domain events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def provider_invocation_started(
        self, model_id: str, provider_model: str, kind: str
    ) -> None: ...

    def provider_invocation_completed(
        self, model_id: str, latency_ms: int, output_chars: int
    ) -> None: ...

    def provider_invocation_failed(
        self, model_id: str, latency_ms: int, reason: str
    ) -> None: ...
