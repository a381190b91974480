"""Observer port for the dispatch domain: defines events in domain language."""

from typing import Protocol


class DispatchObserver(Protocol):
    """Observer port emitting structured events during one dispatch pass.

    Implementations may log to structlog, render progress, or record for tests.
    """

    def dispatch_phase_started(self, phase: str, model_ids: list[str]) -> None: ...

    def dispatch_item_started(self, phase: str, index: int, model_id: str) -> None: ...

    def dispatch_item_settled(
        self,
        phase: str,
        index: int,
        model_id: str,
        latency_ms: int,
        error: str | None,
    ) -> None: ...

    def dispatch_item_timed_out(
        self, phase: str, index: int, model_id: str, timeout_seconds: float
    ) -> None: ...

    def dispatch_phase_completed(
        self, phase: str, total: int, failed: int, elapsed_seconds: float
    ) -> None: ...
