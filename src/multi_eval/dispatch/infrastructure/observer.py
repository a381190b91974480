"""StructlogDispatchObserver: production observer that delegates to structlog."""

import structlog


class StructlogDispatchObserver:
    """Logs dispatch domain events to structlog.

    Does NOT inherit from DispatchObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def dispatch_phase_started(self, phase: str, model_ids: list[str]) -> None:
        self._log.info(
            "dispatch.phase_started",
            phase=phase,
            model_ids=model_ids,
            fan_out=len(model_ids),
        )

    def dispatch_item_started(self, phase: str, index: int, model_id: str) -> None:
        self._log.debug(
            "dispatch.item_started", phase=phase, index=index, model_id=model_id
        )

    def dispatch_item_settled(
        self,
        phase: str,
        index: int,
        model_id: str,
        latency_ms: int,
        error: str | None,
    ) -> None:
        if error is None:
            self._log.info(
                "dispatch.item_settled",
                phase=phase,
                index=index,
                model_id=model_id,
                latency_ms=latency_ms,
            )
            return
        self._log.warning(
            "dispatch.item_failed",
            phase=phase,
            index=index,
            model_id=model_id,
            latency_ms=latency_ms,
            error=error,
        )

    def dispatch_item_timed_out(
        self, phase: str, index: int, model_id: str, timeout_seconds: float
    ) -> None:
        self._log.warning(
            "dispatch.item_timed_out",
            phase=phase,
            index=index,
            model_id=model_id,
            timeout_seconds=timeout_seconds,
        )

    def dispatch_phase_completed(
        self, phase: str, total: int, failed: int, elapsed_seconds: float
    ) -> None:
        self._log.info(
            "dispatch.phase_completed",
            phase=phase,
            total=total,
            failed=failed,
            elapsed_seconds=round(elapsed_seconds, 2),
        )
