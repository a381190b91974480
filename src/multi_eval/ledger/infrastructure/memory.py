"""In-memory run ledgers, one per session."""

import threading
from collections.abc import Callable

from multi_eval.ledger.domain.errors import RunNotFoundError
from multi_eval.ledger.domain.run import Mode, Run, RunId


class RunLedger:
    """Ordered, per-mode record of runs, safe to share across threads.

    Runs are only removed mode-wide by ``clear``. Every mutation replaces the
    stored snapshot by id under one lock, so concurrent phase results for
    different runs never overwrite each other.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._order: dict[Mode, list[RunId]] = {mode: [] for mode in Mode}
        self._runs: dict[RunId, Run] = {}
        self._selected: dict[Mode, RunId] = {}

    def append(self, mode: Mode, run: Run) -> Run:
        with self._lock:
            if run.id in self._runs:
                raise ValueError(f"run '{run.id}' is already recorded")
            self._order[mode].append(run.id)
            self._runs[run.id] = run
            self._selected.pop(mode, None)
        return run

    def get(self, run_id: RunId) -> Run:
        """Raises RunNotFoundError if run_id is not recorded."""
        with self._lock:
            return self._get_locked(run_id=run_id)

    def update(self, run_id: RunId, **changes: object) -> Run:
        """Replace the run's snapshot with a copy carrying ``changes``."""
        return self.apply(
            run_id=run_id, change=lambda run: run.with_changes(**changes)
        )

    def apply(self, run_id: RunId, change: Callable[[Run], Run | None]) -> Run:
        """Atomically replace a run with ``change(run)``.

        ``change`` sees the latest snapshot. Returning None leaves the run
        untouched. The stored snapshot is returned either way.
        """
        with self._lock:
            current = self._get_locked(run_id=run_id)
            updated = change(current)
            if updated is None:
                return current
            self._runs[run_id] = updated
            return updated

    def clear(self, mode: Mode) -> int:
        """Remove every run of ``mode``; other modes are untouched."""
        with self._lock:
            removed = self._order[mode]
            for run_id in removed:
                del self._runs[run_id]
            self._order[mode] = []
            self._selected.pop(mode, None)
            return len(removed)

    def select(self, mode: Mode, run_id: RunId) -> Run:
        with self._lock:
            if run_id not in self._order[mode]:
                raise RunNotFoundError(run_id=run_id)
            self._selected[mode] = run_id
            return self._runs[run_id]

    def active(self, mode: Mode) -> Run | None:
        """The explicitly selected run, else the most recently appended one."""
        with self._lock:
            run_id = self._selected.get(mode)
            if run_id is None and self._order[mode]:
                run_id = self._order[mode][-1]
            return self._runs[run_id] if run_id is not None else None

    def _get_locked(self, run_id: RunId) -> Run:
        try:
            return self._runs[run_id]
        except KeyError:
            raise RunNotFoundError(run_id=run_id) from None

    def list(self, mode: Mode) -> list[Run]:
        """Runs of ``mode`` in append order."""
        with self._lock:
            return [self._runs[run_id] for run_id in self._order[mode]]


class SessionLedgers:
    """Maps a session id to its own RunLedger, created on first use."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ledgers: dict[str, RunLedger] = {}

    def get(self, session_id: str) -> RunLedger:
        with self._lock:
            ledger = self._ledgers.get(session_id)
            if ledger is None:
                ledger = RunLedger()
                self._ledgers[session_id] = ledger
            return ledger

