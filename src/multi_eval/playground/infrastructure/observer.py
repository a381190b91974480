"""Structlog implementation of the PlaygroundObserver port."""

import structlog


class StructlogPlaygroundObserver:
    """Delegates playground run lifecycle events to structlog.

    Satisfies the PlaygroundObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_created(self, run_id: str, mode: str, model_ids: list[str]) -> None:
        self._log.info(
            "playground.run_created", run_id=run_id, mode=mode, model_ids=model_ids
        )

    def run_phase_started(self, run_id: str, phase: str, state: str) -> None:
        self._log.info(
            "playground.phase_started", run_id=run_id, phase=phase, state=state
        )

    def run_phase_applied(self, run_id: str, phase: str, state: str) -> None:
        self._log.info(
            "playground.phase_applied", run_id=run_id, phase=phase, state=state
        )

    def run_result_discarded(self, run_id: str, phase: str) -> None:
        self._log.warning(
            "playground.result_discarded",
            run_id=run_id,
            phase=phase,
            message="Result arrived after the run was cancelled",
        )

    def run_phase_failed(self, run_id: str, state: str, reason: str) -> None:
        self._log.error(
            "playground.phase_failed", run_id=run_id, state=state, reason=reason
        )

    def run_cancelled(self, run_id: str, state: str) -> None:
        self._log.info("playground.run_cancelled", run_id=run_id, state=state)

    def runs_cleared(self, mode: str, count: int) -> None:
        self._log.info("playground.runs_cleared", mode=mode, count=count)
