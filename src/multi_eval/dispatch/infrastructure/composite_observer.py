"""CompositeDispatchObserver: fans out all events to a list of observers."""

from multi_eval.dispatch.domain.observer import DispatchObserver


class CompositeDispatchObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from DispatchObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[DispatchObserver]) -> None:
        self._observers = observers

    def dispatch_phase_started(self, phase: str, model_ids: list[str]) -> None:
        for obs in self._observers:
            obs.dispatch_phase_started(phase=phase, model_ids=model_ids)

    def dispatch_item_started(self, phase: str, index: int, model_id: str) -> None:
        for obs in self._observers:
            obs.dispatch_item_started(phase=phase, index=index, model_id=model_id)

    def dispatch_item_settled(
        self,
        phase: str,
        index: int,
        model_id: str,
        latency_ms: int,
        error: str | None,
    ) -> None:
        for obs in self._observers:
            obs.dispatch_item_settled(
                phase=phase,
                index=index,
                model_id=model_id,
                latency_ms=latency_ms,
                error=error,
            )

    def dispatch_item_timed_out(
        self, phase: str, index: int, model_id: str, timeout_seconds: float
    ) -> None:
        for obs in self._observers:
            obs.dispatch_item_timed_out(
                phase=phase,
                index=index,
                model_id=model_id,
                timeout_seconds=timeout_seconds,
            )

    def dispatch_phase_completed(
        self, phase: str, total: int, failed: int, elapsed_seconds: float
    ) -> None:
        for obs in self._observers:
            obs.dispatch_phase_completed(
                phase=phase,
                total=total,
                failed=failed,
                elapsed_seconds=elapsed_seconds,
            )
