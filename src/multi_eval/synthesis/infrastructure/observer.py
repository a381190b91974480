"""Structlog implementation of the SynthesisObserver port."""

import structlog


class StructlogSynthesisObserver:
    """Delegates synthesis domain events to structlog.

    Satisfies the SynthesisObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def synthesis_parsed(self, orchestrator_model_id: str) -> None:
        self._log.info(
            "synthesis.parsed", orchestrator_model_id=orchestrator_model_id
        )

    def synthesis_fell_back_to_text(
        self, orchestrator_model_id: str, reason: str
    ) -> None:
        self._log.warning(
            "synthesis.fell_back_to_text",
            orchestrator_model_id=orchestrator_model_id,
            reason=reason,
        )

    def synthesis_failed(self, orchestrator_model_id: str, reason: str) -> None:
        self._log.error(
            "synthesis.failed",
            orchestrator_model_id=orchestrator_model_id,
            reason=reason,
        )
