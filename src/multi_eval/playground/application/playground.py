"""Playground — the mode workflows that compose dispatch, evaluation and synthesis."""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from typing import Any

from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.core.errors import InvalidRequestError
from multi_eval.dispatch.application.dispatcher import Dispatcher
from multi_eval.envelope.domain.builder import (
    build_envelope,
    build_placeholder_envelope,
)
from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.envelope.domain.item import ResultItem, ResultKind
from multi_eval.evaluation.application.aggregator import EvaluationAggregator
from multi_eval.ledger.domain.errors import RunNotFoundError
from multi_eval.ledger.domain.run import Message, Mode, Run, RunId, RunState
from multi_eval.ledger.infrastructure.memory import RunLedger
from multi_eval.playground.domain.observer import PlaygroundObserver
from multi_eval.synthesis.application.synthesizer import Synthesizer

CANCELLED_ERROR = "Cancelled"


def _new_run_id() -> RunId:
    return uuid.uuid4().hex


class Playground:
    """Runs one user prompt through a mode's phases and records it in the ledger.

    Every workflow validates its model ids before a Run exists, writes
    'Loading...' placeholders, then applies each phase's result by run id
    once that phase has fully settled. A run cancelled mid-phase keeps the
    state it had; results that arrive afterwards are discarded.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        aggregator: EvaluationAggregator,
        synthesizer: Synthesizer,
        ledger: RunLedger,
        observer: PlaygroundObserver,
        id_factory: Callable[[], RunId] = _new_run_id,
    ) -> None:
        self._dispatcher = dispatcher
        self._aggregator = aggregator
        self._synthesizer = synthesizer
        self._ledger = ledger
        self._observer = observer
        self._id_factory = id_factory
        self._tasks: dict[RunId, asyncio.Task[Any]] = {}

    @property
    def ledger(self) -> RunLedger:
        return self._ledger

    async def chat(
        self, model_id: str, prompt: str, config: GenerationConfig
    ) -> Run:
        """Send one chat turn to model_id and append both messages to the thread.

        Turns accumulate on the active single-mode run. Each turn is an
        independent call; earlier messages are not replayed to the model.
        """
        self._dispatcher.check(phase=Phase.SINGLE, model_ids=[model_id])
        question = Message(role="user", content=prompt)
        slots = {Phase.SINGLE: (ResultKind.MODEL_OUTPUT, [model_id])}

        active = self._ledger.active(mode=Mode.SINGLE)
        if active is None or active.cancelled:
            run = self._open(mode=Mode.SINGLE, prompt=prompt, slots=slots)
            run = self._ledger.update(run_id=run.id, thread=[question])
        else:
            run = self._begin(
                run_id=active.id,
                phase=Phase.SINGLE,
                to=RunState.PRIMARY_PENDING,
                changes=lambda r: {
                    "prompt": prompt,
                    **_slot_changes(run=r, slots=slots),
                    "thread": [*r.thread, question],
                },
            )

        envelope = await self._run_phase(
            run_id=run.id,
            work=self._dispatcher.run(
                phase=Phase.SINGLE, model_ids=[model_id], prompt=prompt, config=config
            ),
        )
        if envelope is None:
            return self._ledger.get(run_id=run.id)

        item = envelope.items[0]
        answer = Message(
            role="assistant", content=_display_text(item=item), model_id=model_id
        )
        return self._settle(
            run_id=run.id,
            phase=Phase.SINGLE,
            to=RunState.PRIMARY_SETTLED,
            changes=lambda r: {
                "envelopes": {**r.envelopes, Phase.SINGLE: envelope},
                "thread": [*r.thread, answer],
            },
        )

    async def compare(
        self, model_ids: list[str], prompt: str, config: GenerationConfig
    ) -> Run:
        """Run the primary phase only; the new run becomes the active compare run."""
        self._dispatcher.check(phase=Phase.PRIMARY, model_ids=model_ids)
        run = self._open(
            mode=Mode.COMPARE,
            prompt=prompt,
            slots={Phase.PRIMARY: (ResultKind.MODEL_OUTPUT, model_ids)},
        )
        return await self._primary(
            run_id=run.id, model_ids=model_ids, prompt=prompt, config=config
        )

    async def multi_judge(
        self,
        primary_model_ids: list[str],
        judge_model_ids: list[str],
        prompt: str,
        config: GenerationConfig,
    ) -> Run:
        """Run the primary phase, then every judge over its settled outputs."""
        self._dispatcher.check(phase=Phase.PRIMARY, model_ids=primary_model_ids)
        self._dispatcher.check(phase=Phase.JUDGE_MULTI, model_ids=judge_model_ids)
        run = self._open(
            mode=Mode.MULTI_JUDGE,
            prompt=prompt,
            slots={
                Phase.PRIMARY: (ResultKind.MODEL_OUTPUT, primary_model_ids),
                Phase.JUDGE_MULTI: (ResultKind.JUDGE_ASSESSMENT, judge_model_ids),
            },
        )
        run = await self._primary(
            run_id=run.id, model_ids=primary_model_ids, prompt=prompt, config=config
        )
        if run.cancelled:
            return run

        run = self._begin(
            run_id=run.id, phase=Phase.JUDGE_MULTI, to=RunState.EVALUATION_PENDING
        )
        if run.cancelled:
            return run
        envelope = await self._run_phase(
            run_id=run.id,
            work=self._aggregator.evaluate_multi(
                judge_model_ids=judge_model_ids,
                prompt=prompt,
                primary_items=run.envelopes[Phase.PRIMARY].items,
                config=config,
            ),
        )
        if envelope is None:
            return self._ledger.get(run_id=run.id)
        return self._settle(
            run_id=run.id,
            phase=Phase.JUDGE_MULTI,
            to=RunState.EVALUATION_SETTLED,
            changes=lambda r: {
                "envelopes": {**r.envelopes, Phase.JUDGE_MULTI: envelope}
            },
        )

    async def single_judge(
        self,
        primary_model_ids: list[str],
        evaluator_model_id: str,
        prompt: str,
        config: GenerationConfig,
    ) -> Run:
        """Run the primary phase, then one evaluator's consolidated report."""
        self._dispatcher.check(phase=Phase.PRIMARY, model_ids=primary_model_ids)
        self._dispatcher.check(
            phase=Phase.JUDGE_SINGLE, model_ids=[evaluator_model_id]
        )
        run = self._open(
            mode=Mode.SINGLE_JUDGE,
            prompt=prompt,
            slots={
                Phase.PRIMARY: (ResultKind.MODEL_OUTPUT, primary_model_ids),
                Phase.JUDGE_SINGLE: (
                    ResultKind.JUDGE_ASSESSMENT,
                    [evaluator_model_id],
                ),
            },
        )
        run = await self._primary(
            run_id=run.id, model_ids=primary_model_ids, prompt=prompt, config=config
        )
        if run.cancelled:
            return run

        run = self._begin(
            run_id=run.id, phase=Phase.JUDGE_SINGLE, to=RunState.EVALUATION_PENDING
        )
        if run.cancelled:
            return run
        item = await self._run_phase(
            run_id=run.id,
            work=self._aggregator.evaluate_single(
                evaluator_model_id=evaluator_model_id,
                prompt=prompt,
                primary_items=run.envelopes[Phase.PRIMARY].items,
                config=config,
            ),
        )
        if item is None:
            return self._ledger.get(run_id=run.id)
        envelope = build_envelope(phase=Phase.JUDGE_SINGLE, items=[item])
        return self._settle(
            run_id=run.id,
            phase=Phase.JUDGE_SINGLE,
            to=RunState.EVALUATION_SETTLED,
            changes=lambda r: {
                "envelopes": {**r.envelopes, Phase.JUDGE_SINGLE: envelope}
            },
        )

    async def orchestrate(
        self,
        orchestrator_model_id: str,
        config: GenerationConfig,
        instruction: str | None = None,
        run_id: RunId | None = None,
    ) -> Run:
        """Synthesize a final answer for a compare run's primary outputs.

        Targets ``run_id`` when given, else the active compare run. Running
        it again overwrites the previous answer, rationale and thread; the
        primary outputs are never touched.

        Raises:
            InvalidRequestError: if there is no eligible compare run, the run
                was cancelled, or its primary phase has not settled.
            RunNotFoundError: if run_id is not recorded.
        """
        self._dispatcher.check(
            phase=Phase.ORCHESTRATE, model_ids=[orchestrator_model_id]
        )
        target = (
            self._ledger.get(run_id=run_id)
            if run_id is not None
            else self._ledger.active(mode=Mode.COMPARE)
        )
        if target is None:
            raise InvalidRequestError("there is no compare run to orchestrate")
        if target.mode != Mode.COMPARE:
            raise InvalidRequestError(
                f"run '{target.id}' is a {target.mode} run; only compare runs"
                " can be orchestrated"
            )
        if target.cancelled:
            raise InvalidRequestError(f"run '{target.id}' was cancelled")

        slots = {Phase.ORCHESTRATE: (ResultKind.SYNTHESIS, [orchestrator_model_id])}
        run = self._begin(
            run_id=target.id,
            phase=Phase.ORCHESTRATE,
            to=RunState.SYNTHESIS_PENDING,
            changes=lambda r: {
                **_slot_changes(run=r, slots=slots),
                "orchestrator_model_id": orchestrator_model_id,
                "orchestration_prompt": instruction,
            },
        )
        if run.cancelled:
            return run

        item = await self._run_phase(
            run_id=run.id,
            work=self._synthesizer.orchestrate(
                orchestrator_model_id=orchestrator_model_id,
                prompt=run.prompt,
                primary_items=run.envelopes[Phase.PRIMARY].items,
                config=config,
                synthesis_instruction=instruction,
            ),
        )
        if item is None:
            return self._ledger.get(run_id=run.id)

        if item.ok and item.structured is not None:
            final_answer = item.structured["finalAnswer"]
            rationale = item.structured["rationale"]
        else:
            final_answer = _display_text(item=item)
            rationale = ""
        envelope = build_envelope(phase=Phase.ORCHESTRATE, items=[item])
        thread = [
            Message(role="user", content=run.prompt),
            Message(
                role="assistant", content=final_answer, model_id=orchestrator_model_id
            ),
        ]
        return self._settle(
            run_id=run.id,
            phase=Phase.ORCHESTRATE,
            to=RunState.SYNTHESIS_SETTLED,
            changes=lambda r: {
                "envelopes": {**r.envelopes, Phase.ORCHESTRATE: envelope},
                "final_answer": final_answer,
                "rationale": rationale,
                "thread": thread,
            },
        )

    def cancel(self, run_id: RunId) -> Run:
        """Mark the run cancelled and stop its in-flight phase, if any.

        Pending placeholders become 'Cancelled' error items and a pending
        state moves to its settled counterpart. Cancelling twice is a no-op.

        Raises:
            RunNotFoundError: if run_id is not recorded.
        """
        run = self._ledger.apply(run_id=run_id, change=_cancelled)
        task = self._tasks.get(run_id)
        if task is not None and not task.done():
            task.cancel()
        self._observer.run_cancelled(run_id=run_id, state=run.state.value)
        return run

    def runs(self, mode: Mode) -> list[Run]:
        return self._ledger.list(mode=mode)

    def select(self, mode: Mode, run_id: RunId) -> Run:
        return self._ledger.select(mode=mode, run_id=run_id)

    def clear(self, mode: Mode) -> int:
        """Remove every run of one mode; other modes keep theirs."""
        count = self._ledger.clear(mode=mode)
        self._observer.runs_cleared(mode=mode.value, count=count)
        return count

    async def _primary(
        self,
        run_id: RunId,
        model_ids: list[str],
        prompt: str,
        config: GenerationConfig,
    ) -> Run:
        envelope = await self._run_phase(
            run_id=run_id,
            work=self._dispatcher.run(
                phase=Phase.PRIMARY, model_ids=model_ids, prompt=prompt, config=config
            ),
        )
        if envelope is None:
            return self._ledger.get(run_id=run_id)
        return self._settle(
            run_id=run_id,
            phase=Phase.PRIMARY,
            to=RunState.PRIMARY_SETTLED,
            changes=lambda r: {
                "envelopes": {**r.envelopes, Phase.PRIMARY: envelope}
            },
        )

    def _open(
        self,
        mode: Mode,
        prompt: str,
        slots: dict[Phase, tuple[ResultKind, list[str]]],
    ) -> Run:
        """Record a new run in primary_pending with placeholders for every slot."""
        run = Run(id=self._id_factory(), mode=mode, prompt=prompt)
        run = run.advance(
            to=RunState.PRIMARY_PENDING, **_slot_changes(run=run, slots=slots)
        )
        self._ledger.append(mode=mode, run=run)
        self._observer.run_created(
            run_id=run.id,
            mode=mode.value,
            model_ids=[m for _, ids in slots.values() for m in ids],
        )
        return run

    def _begin(
        self,
        run_id: RunId,
        phase: Phase,
        to: RunState,
        changes: Callable[[Run], dict[str, Any]] | None = None,
    ) -> Run:
        """Move a run into a pending state unless it has been cancelled.

        Raises:
            RunStateError: if the run's state does not allow ``to``.
        """

        def change(run: Run) -> Run | None:
            if run.cancelled:
                return None
            return run.advance(to=to, **(changes(run) if changes else {}))

        run = self._ledger.apply(run_id=run_id, change=change)
        if not run.cancelled:
            self._observer.run_phase_started(
                run_id=run_id, phase=phase.value, state=run.state.value
            )
        return run

    def _settle(
        self,
        run_id: RunId,
        phase: Phase,
        to: RunState,
        changes: Callable[[Run], dict[str, Any]],
    ) -> Run:
        """Apply a settled result by run id; dropped if the run was cancelled."""

        def change(run: Run) -> Run | None:
            if run.cancelled:
                return None
            return run.advance(to=to, **changes(run))

        run = self._ledger.apply(run_id=run_id, change=change)
        if run.cancelled:
            self._observer.run_result_discarded(run_id=run_id, phase=phase.value)
        else:
            self._observer.run_phase_applied(
                run_id=run_id, phase=phase.value, state=run.state.value
            )
        return run

    def _fail(self, run_id: RunId, exc: Exception) -> None:
        reason = f"Phase raised {type(exc).__name__}: {exc}"
        try:
            run = self._ledger.apply(run_id=run_id, change=_failed(error=reason))
        except RunNotFoundError:
            # Cleared while the phase ran.
            return
        self._observer.run_phase_failed(
            run_id=run_id, state=run.state.value, reason=reason
        )

    async def _run_phase[T](self, run_id: RunId, work: Awaitable[T]) -> T | None:
        """Await one phase as a cancellable task; None means cancel() stopped it.

        If the work raises, the run is settled with error items in place of
        its placeholders before the exception propagates.
        """
        task = asyncio.ensure_future(work)
        self._tasks[run_id] = task
        try:
            return await task
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            return None
        except Exception as exc:
            self._fail(run_id=run_id, exc=exc)
            raise
        finally:
            if self._tasks.get(run_id) is task:
                del self._tasks[run_id]


def _slot_changes(
    run: Run, slots: dict[Phase, tuple[ResultKind, list[str]]]
) -> dict[str, Any]:
    model_ids = dict(run.model_ids)
    envelopes = dict(run.envelopes)
    for phase, (kind, ids) in slots.items():
        model_ids[phase] = list(ids)
        envelopes[phase] = build_placeholder_envelope(
            phase=phase, kind=kind, model_ids=ids
        )
    return {"model_ids": model_ids, "envelopes": envelopes}


def _display_text(item: ResultItem) -> str:
    return item.text if item.ok else f"Error: {item.error}"


def _closed(run: Run, error: str) -> dict[str, Any]:
    """Changes that settle a pending run with ``error`` in every placeholder."""
    envelopes: dict[Phase, Envelope] = {}
    for phase, envelope in run.envelopes.items():
        if any(item.is_placeholder for item in envelope.items):
            envelope = build_envelope(
                phase=phase,
                items=[
                    ResultItem.failure(
                        kind=item.kind, model_id=item.model_id, error=error
                    )
                    if item.is_placeholder
                    else item
                    for item in envelope.items
                ],
            )
        envelopes[phase] = envelope
    return {"state": run.state.settled_counterpart, "envelopes": envelopes}


def _cancelled(run: Run) -> Run | None:
    if run.cancelled:
        return None
    return run.with_changes(cancelled=True, **_closed(run=run, error=CANCELLED_ERROR))


def _failed(error: str) -> Callable[[Run], Run | None]:
    def change(run: Run) -> Run | None:
        if run.cancelled or not run.state.pending:
            return None
        return run.with_changes(**_closed(run=run, error=error))

    return change
