"""Observer port for the playground: run lifecycle events in domain language."""

from typing import Protocol


class PlaygroundObserver(Protocol):
    """Observer port emitting structured events as runs move through their phases.

    Implementations may log to structlog or record for tests.
    """

    def run_created(self, run_id: str, mode: str, model_ids: list[str]) -> None: ...

    def run_phase_started(self, run_id: str, phase: str, state: str) -> None: ...

    def run_phase_applied(self, run_id: str, phase: str, state: str) -> None: ...

    def run_result_discarded(self, run_id: str, phase: str) -> None: ...

    def run_phase_failed(self, run_id: str, state: str, reason: str) -> None: ...

    def run_cancelled(self, run_id: str, state: str) -> None: ...

    def runs_cleared(self, mode: str, count: int) -> None: ...
