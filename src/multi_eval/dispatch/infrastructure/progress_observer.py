"""ProgressDispatchObserver: one Rich progress row per dispatch phase, on stderr."""

from __future__ import annotations

import sys

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

_PHASE_COLORS: dict[str, str] = {
    "primary": "cyan",
    "single": "cyan",
    "judge_multi": "magenta",
    "judge_single": "yellow",
    "orchestrate": "green",
}


class _CountsColumn(ProgressColumn):
    """Renders done+inflight/total, with failures in red when present."""

    def render(self, task: Task) -> Text:
        done = int(task.fields.get("done", 0))
        inflight = int(task.fields.get("inflight", 0))
        failed = int(task.fields.get("failed", 0))
        parts: list[tuple[str, str]] = [
            (str(done), "bright_green"),
            ("+", "dim white"),
            (str(inflight), "grey50"),
            ("/", "dim white"),
            (str(int(task.total or 0)), "default"),
        ]
        if failed:
            parts.append((f"  {failed} failed", "red"))
        return Text.assemble(*parts)


class _ThreeSegmentBarColumn(ProgressColumn):
    """ProgressColumn that renders three segments: done, in-flight, remaining."""

    def __init__(self, bar_width: int = 30) -> None:
        super().__init__()
        self.bar_width = bar_width

    def render(self, task: Task) -> Text:
        total = task.total or 0
        if total > 0:
            done_cells = int(task.completed / total * self.bar_width)
            inflight = int(task.fields.get("inflight", 0))
            inflight_cells = min(
                int(inflight / total * self.bar_width),
                self.bar_width - done_cells,
            )
        else:
            done_cells = 0
            inflight_cells = 0
        remaining_cells = self.bar_width - done_cells - inflight_cells

        result = Text()
        result.append("█" * done_cells, style="bright_green")
        result.append("▒" * inflight_cells, style="grey50")
        result.append("░" * remaining_cells, style="dim white")
        return result


class ProgressDispatchObserver:
    """Renders a live progress row for every phase of a pipeline on stderr.

    Rows are added as phases start; the live display stops once no phase is
    still running. Pass ``disabled=True`` to suppress all terminal output
    (useful in tests).

    Does NOT inherit from DispatchObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._done: dict[str, int] = {}
        self._inflight: dict[str, int] = {}
        self._failed: dict[str, int] = {}
        self._running: set[str] = set()
        self._task_ids: dict[str, TaskID] = {}
        self._progress: Progress | None = None
        self._live: Live | None = None

    def _describe(self, phase: str) -> str:
        if not sys.stderr.isatty():
            return f"{phase:<13}"
        color = _PHASE_COLORS.get(phase, "white")
        return f"[{color}]{phase:<13}[/{color}]"

    def _start_live(self) -> Progress:
        console = Console(stderr=True)
        progress = Progress(
            TextColumn("{task.description}"),
            _ThreeSegmentBarColumn(),
            _CountsColumn(),
            TimeElapsedColumn(),
            console=console,
            refresh_per_second=10,
            transient=False,
        )
        legend = Text.assemble(
            "  Legend:  ",
            ("█", "bright_green"),
            " settled  ",
            ("▒", "grey50"),
            " in-flight  ",
            ("░", "dim white"),
            " queued",
        )
        self._live = Live(
            Group(progress, Text(""), legend), console=console, refresh_per_second=10
        )
        self._live.start()
        return progress

    def _update(self, phase: str) -> None:
        if self._progress is None or phase not in self._task_ids:
            return
        self._progress.update(
            self._task_ids[phase],
            completed=self._done[phase],
            done=self._done[phase],
            inflight=self._inflight[phase],
            failed=self._failed[phase],
        )

    def dispatch_phase_started(self, phase: str, model_ids: list[str]) -> None:
        self._done[phase] = 0
        self._inflight[phase] = 0
        self._failed[phase] = 0
        self._running.add(phase)
        if self._disabled:
            return
        if self._progress is None:
            self._progress = self._start_live()
        self._task_ids[phase] = self._progress.add_task(
            description=self._describe(phase),
            total=float(len(model_ids)),
            done=0,
            inflight=0,
            failed=0,
        )

    def dispatch_item_started(self, phase: str, index: int, model_id: str) -> None:
        if phase in self._inflight:
            self._inflight[phase] += 1
        if not self._disabled:
            self._update(phase=phase)

    def dispatch_item_settled(
        self,
        phase: str,
        index: int,
        model_id: str,
        latency_ms: int,
        error: str | None,
    ) -> None:
        if phase in self._done:
            self._done[phase] += 1
            self._inflight[phase] = max(0, self._inflight[phase] - 1)
            if error is not None:
                self._failed[phase] += 1
        if not self._disabled:
            self._update(phase=phase)

    def dispatch_item_timed_out(
        self, phase: str, index: int, model_id: str, timeout_seconds: float
    ) -> None:
        pass

    def dispatch_phase_completed(
        self, phase: str, total: int, failed: int, elapsed_seconds: float
    ) -> None:
        self._running.discard(phase)
        if self._running:
            return
        if self._live is not None:
            self._live.stop()
        self._task_ids = {}
        self._progress = None
        self._live = None

    @property
    def counts(self) -> dict[str, tuple[int, int, int]]:
        """Per-phase (done, inflight, failed) counters."""
        return {
            phase: (self._done[phase], self._inflight[phase], self._failed[phase])
            for phase in self._done
        }
