"""Structlog implementation of the ProviderObserver port."""

import structlog


class StructlogProviderObserver:
    """Delegates provider domain events to structlog.

    Satisfies the ProviderObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def provider_invocation_started(
        self, model_id: str, provider_model: str, kind: str
    ) -> None:
        self._log.debug(
            "provider.invocation_started",
            model_id=model_id,
            provider_model=provider_model,
            kind=kind,
        )

    def provider_invocation_completed(
        self, model_id: str, latency_ms: int, output_chars: int
    ) -> None:
        self._log.info(
            "provider.invocation_completed",
            model_id=model_id,
            latency_ms=latency_ms,
            output_chars=output_chars,
        )

    def provider_invocation_failed(
        self, model_id: str, latency_ms: int, reason: str
    ) -> None:
        self._log.error(
            "provider.invocation_failed",
            model_id=model_id,
            latency_ms=latency_ms,
            reason=reason,
        )
