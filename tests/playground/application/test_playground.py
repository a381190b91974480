"""Tests for the Playground mode workflows."""

import asyncio
import itertools
import json
from unittest.mock import patch

import pytest

from multi_eval.config.domain.dispatch import SynthesisConfig
from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.core.errors import (
    EmptyModelListError,
    InvalidRequestError,
    UnknownModelError,
)
from multi_eval.dispatch.application.dispatcher import Dispatcher
from multi_eval.envelope.domain.envelope import Phase
from multi_eval.evaluation.application.aggregator import EvaluationAggregator
from multi_eval.evaluation.domain.assessment import RiskLabel
from multi_eval.evaluation.domain.matrix import AssessmentMatrix
from multi_eval.ledger.domain.errors import RunNotFoundError
from multi_eval.ledger.domain.run import Mode, Run, RunState
from multi_eval.ledger.infrastructure.memory import RunLedger
from multi_eval.playground.application.playground import CANCELLED_ERROR, Playground
from multi_eval.synthesis.application.synthesizer import Synthesizer
from tests.dispatch.fake_observer import FakeDispatchObserver
from tests.evaluation.fake_observer import FakeEvaluationObserver
from tests.playground.fake_observer import FakePlaygroundObserver
from tests.provider.fake_adapter import FakeAdapter, FakeResolver, Reply
from tests.synthesis.fake_observer import FakeSynthesisObserver

_CONFIG = GenerationConfig()
_KNOWN = ["m1", "m2", "m3", "j1", "j2", "orc"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_playground(
    adapter: FakeAdapter | None = None,
    timeout_seconds: float = 5.0,
) -> tuple[Playground, FakeAdapter, FakePlaygroundObserver]:
    fake = adapter if adapter is not None else FakeAdapter()
    observer = FakePlaygroundObserver()
    dispatcher = Dispatcher(
        resolver=FakeResolver(adapter=fake, known=_KNOWN),
        observer=FakeDispatchObserver(),
        timeout_seconds=timeout_seconds,
    )
    ids = (f"run-{n}" for n in itertools.count(1))
    playground = Playground(
        dispatcher=dispatcher,
        aggregator=EvaluationAggregator(
            dispatcher=dispatcher, observer=FakeEvaluationObserver()
        ),
        synthesizer=Synthesizer(
            dispatcher=dispatcher,
            observer=FakeSynthesisObserver(),
            config=SynthesisConfig(),
        ),
        ledger=RunLedger(),
        observer=observer,
        id_factory=lambda: next(ids),
    )
    return playground, fake, observer


def _verdicts(*pairs: tuple[str, str]) -> str:
    return json.dumps(
        {
            "assessments": [
                {"targetModelId": target, "risk_score": 30, "risk_label": label}
                for target, label in pairs
            ]
        }
    )


def _synthesis(final_answer: str, rationale: str = "because") -> str:
    return json.dumps({"finalAnswer": final_answer, "rationale": rationale})


async def _compare(playground: Playground, model_ids: list[str] | None = None) -> Run:
    return await playground.compare(
        model_ids=model_ids or ["m1", "m2"], prompt="Capital of France?", config=_CONFIG
    )


async def _wait_for_calls(adapter: FakeAdapter, count: int) -> None:
    for _ in range(100):
        if len(adapter.calls) >= count:
            return
        await asyncio.sleep(0.005)
    raise AssertionError(f"expected {count} adapter calls, saw {len(adapter.calls)}")


# ---------------------------------------------------------------------------
# compare
# ---------------------------------------------------------------------------


class TestCompare:
    async def test_settles_primary_phase(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="ok-1"))
        adapter.script("m2", Reply(text="ok-2"))
        playground, _, observer = _make_playground(adapter=adapter)

        run = await _compare(playground=playground)

        assert run.mode == Mode.COMPARE
        assert run.state == RunState.PRIMARY_SETTLED
        envelope = run.envelope(phase=Phase.PRIMARY)
        assert envelope is not None
        assert [item.text for item in envelope.items] == ["ok-1", "ok-2"]
        assert run.model_ids[Phase.PRIMARY] == ["m1", "m2"]
        assert observer.created[0].run_id == run.id
        assert observer.applied[0].phase == "primary"

    async def test_timed_out_model_keeps_its_slot(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="ok-1"))
        adapter.script("m2", Reply(text="ok-2"))
        adapter.script("m3", Reply(delay=1.0))
        playground, _, _ = _make_playground(adapter=adapter, timeout_seconds=0.05)

        run = await _compare(playground=playground, model_ids=["m1", "m2", "m3"])

        envelope = run.envelope(phase=Phase.PRIMARY)
        assert envelope is not None
        assert len(envelope.items) == 3
        assert envelope.items[0].text == "ok-1"
        assert envelope.items[1].text == "ok-2"
        assert envelope.items[2].error is not None

    async def test_empty_model_list_creates_no_run(self) -> None:
        playground, adapter, _ = _make_playground()

        with pytest.raises(EmptyModelListError):
            await _compare(playground=playground, model_ids=[])

        assert adapter.calls == []
        assert playground.runs(mode=Mode.COMPARE) == []

    async def test_unknown_model_creates_no_run(self) -> None:
        playground, adapter, _ = _make_playground()

        with pytest.raises(UnknownModelError):
            await _compare(playground=playground, model_ids=["m1", "nope"])

        assert adapter.calls == []
        assert playground.runs(mode=Mode.COMPARE) == []

    async def test_concurrent_runs_do_not_interfere(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="slow", delay=0.03))
        adapter.script("m2", Reply(text="fast"))
        playground, _, _ = _make_playground(adapter=adapter)

        first, second = await asyncio.gather(
            _compare(playground=playground, model_ids=["m1"]),
            _compare(playground=playground, model_ids=["m2"]),
        )

        runs = {run.id: run for run in playground.runs(mode=Mode.COMPARE)}
        assert runs[first.id].envelopes[Phase.PRIMARY].items[0].text == "slow"
        assert runs[second.id].envelopes[Phase.PRIMARY].items[0].text == "fast"


# ---------------------------------------------------------------------------
# multi_judge / single_judge
# ---------------------------------------------------------------------------


class TestMultiJudge:
    async def test_judges_run_after_primary_settles(self) -> None:
        release = asyncio.Event()
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="Paris", gate=release))
        adapter.script("m2", Reply(text="Lyon"))
        adapter.script("j1", Reply(text=_verdicts(("m1", "LOW"), ("m2", "HIGH"))))
        playground, _, _ = _make_playground(adapter=adapter)

        task = asyncio.create_task(
            playground.multi_judge(
                primary_model_ids=["m1", "m2"],
                judge_model_ids=["j1"],
                prompt="Capital of France?",
                config=_CONFIG,
            )
        )
        await _wait_for_calls(adapter=adapter, count=2)
        await asyncio.sleep(0.02)

        assert adapter.calls_for(model_id="j1") == []
        pending = playground.runs(mode=Mode.MULTI_JUDGE)[0]
        assert pending.state == RunState.PRIMARY_PENDING

        release.set()
        run = await task

        assert run.state == RunState.EVALUATION_SETTLED
        assert [c.model_id for c in adapter.calls] == ["m1", "m2", "j1"]
        judge_prompt = adapter.calls_for(model_id="j1")[0].prompt
        assert "Paris" in judge_prompt
        assert "Lyon" in judge_prompt

    async def test_missing_assessment_is_absent_not_low(self) -> None:
        adapter = FakeAdapter()
        adapter.script("j1", Reply(text=_verdicts(("m1", "MEDIUM"))))
        adapter.script("j2", Reply(text=_verdicts(("m1", "LOW"), ("m2", "HIGH"))))
        playground, _, _ = _make_playground(adapter=adapter)

        run = await playground.multi_judge(
            primary_model_ids=["m1", "m2"],
            judge_model_ids=["j1", "j2"],
            prompt="q",
            config=_CONFIG,
        )

        matrix = AssessmentMatrix.from_envelope(
            envelope=run.envelopes[Phase.JUDGE_MULTI],
            primary_model_ids=run.model_ids[Phase.PRIMARY],
        )
        assert matrix.label(judge_model_id="j1", target_model_id="m2") is None
        assert matrix.label(judge_model_id="j2", target_model_id="m2") == RiskLabel.HIGH
        assert ("j1", "m2") in matrix.missing()

    async def test_unknown_judge_creates_no_run(self) -> None:
        playground, adapter, _ = _make_playground()

        with pytest.raises(UnknownModelError):
            await playground.multi_judge(
                primary_model_ids=["m1"],
                judge_model_ids=["ghost"],
                prompt="q",
                config=_CONFIG,
            )

        assert adapter.calls == []
        assert playground.runs(mode=Mode.MULTI_JUDGE) == []

    async def test_placeholders_written_for_both_phases(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(delay=0.05))
        playground, _, _ = _make_playground(adapter=adapter)

        task = asyncio.create_task(
            playground.multi_judge(
                primary_model_ids=["m1"],
                judge_model_ids=["j1", "j2"],
                prompt="q",
                config=_CONFIG,
            )
        )
        await _wait_for_calls(adapter=adapter, count=1)

        pending = playground.runs(mode=Mode.MULTI_JUDGE)[0]
        assert pending.state == RunState.PRIMARY_PENDING
        judges = pending.envelopes[Phase.JUDGE_MULTI]
        assert judges.model_ids == ["j1", "j2"]
        assert all(item.is_placeholder for item in judges.items)

        run = await task
        assert run.state == RunState.EVALUATION_SETTLED

    async def test_answer_reading_loading_is_judged(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="Loading..."))
        adapter.script("j1", Reply(text=_verdicts(("m1", "LOW"))))
        playground, _, _ = _make_playground(adapter=adapter)

        run = await playground.multi_judge(
            primary_model_ids=["m1"],
            judge_model_ids=["j1"],
            prompt="What does a spinner say?",
            config=_CONFIG,
        )

        assert run.state == RunState.EVALUATION_SETTLED
        assert run.envelopes[Phase.PRIMARY].items[0].text == "Loading..."
        assert "Loading..." in adapter.calls_for(model_id="j1")[0].prompt


class TestSingleJudge:
    async def test_report_is_recorded(self) -> None:
        adapter = FakeAdapter()
        adapter.script("j1", Reply(text="## Report\nm1 is best."))
        playground, _, _ = _make_playground(adapter=adapter)

        run = await playground.single_judge(
            primary_model_ids=["m1", "m2"],
            evaluator_model_id="j1",
            prompt="q",
            config=_CONFIG,
        )

        assert run.mode == Mode.SINGLE_JUDGE
        assert run.state == RunState.EVALUATION_SETTLED
        report = run.envelopes[Phase.JUDGE_SINGLE]
        assert report.items[0].text == "## Report\nm1 is best."

    async def test_failed_evaluator_is_recorded_as_error(self) -> None:
        adapter = FakeAdapter()
        adapter.script("j1", Reply(error="overloaded"))
        playground, _, _ = _make_playground(adapter=adapter)

        run = await playground.single_judge(
            primary_model_ids=["m1"],
            evaluator_model_id="j1",
            prompt="q",
            config=_CONFIG,
        )

        assert run.envelopes[Phase.JUDGE_SINGLE].items[0].error == "overloaded"


# ---------------------------------------------------------------------------
# chat
# ---------------------------------------------------------------------------


class TestChat:
    async def test_turns_accumulate_on_one_run(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="Hello!"), Reply(text="Paris."))
        playground, _, _ = _make_playground(adapter=adapter)

        first = await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)
        second = await playground.chat(
            model_id="m1", prompt="Capital of France?", config=_CONFIG
        )

        assert second.id == first.id
        assert second.state == RunState.PRIMARY_SETTLED
        assert [(m.role, m.content) for m in second.thread] == [
            ("user", "Hi"),
            ("assistant", "Hello!"),
            ("user", "Capital of France?"),
            ("assistant", "Paris."),
        ]
        assert len(playground.runs(mode=Mode.SINGLE)) == 1

    async def test_history_is_not_replayed(self) -> None:
        playground, adapter, _ = _make_playground()

        await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)
        await playground.chat(model_id="m1", prompt="Again", config=_CONFIG)

        assert [c.prompt for c in adapter.calls] == ["Hi", "Again"]

    async def test_failed_turn_is_rendered_in_thread(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(error="rate limited"))
        playground, _, _ = _make_playground(adapter=adapter)

        run = await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)

        assert run.thread[-1].content == "Error: rate limited"
        assert run.thread[-1].model_id == "m1"

    async def test_clear_starts_a_new_thread(self) -> None:
        playground, _, _ = _make_playground()

        first = await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)
        playground.clear(mode=Mode.SINGLE)
        second = await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)

        assert second.id != first.id
        assert len(second.thread) == 2


# ---------------------------------------------------------------------------
# orchestrate
# ---------------------------------------------------------------------------


class TestOrchestrate:
    async def test_synthesizes_active_compare_run(self) -> None:
        adapter = FakeAdapter()
        adapter.script("orc", Reply(text=_synthesis("Paris", rationale="m1 and m2")))
        playground, _, _ = _make_playground(adapter=adapter)
        compared = await _compare(playground=playground)

        run = await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)

        assert run.id == compared.id
        assert run.state == RunState.SYNTHESIS_SETTLED
        assert run.final_answer == "Paris"
        assert run.rationale == "m1 and m2"
        assert run.orchestrator_model_id == "orc"
        assert [(m.role, m.content) for m in run.thread] == [
            ("user", "Capital of France?"),
            ("assistant", "Paris"),
        ]

    async def test_rerun_overwrites_answer_and_keeps_primaries(self) -> None:
        adapter = FakeAdapter()
        adapter.script(
            "orc", Reply(text=_synthesis("Paris")), Reply(text=_synthesis("PARIS"))
        )
        playground, _, _ = _make_playground(adapter=adapter)
        compared = await _compare(playground=playground)

        await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)
        run = await playground.orchestrate(
            orchestrator_model_id="orc", config=_CONFIG, instruction="Shout it."
        )

        assert run.final_answer == "PARIS"
        assert run.orchestration_prompt == "Shout it."
        assert len(run.thread) == 2
        assert run.envelopes[Phase.PRIMARY] == compared.envelopes[Phase.PRIMARY]

    async def test_orchestrator_error_becomes_final_answer(self) -> None:
        adapter = FakeAdapter()
        adapter.script("orc", Reply(error="context length exceeded"))
        playground, _, _ = _make_playground(adapter=adapter)
        await _compare(playground=playground)

        run = await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)

        assert run.final_answer == "Error: context length exceeded"
        assert run.rationale == ""
        assert run.state == RunState.SYNTHESIS_SETTLED

    async def test_blank_structured_answer_falls_back_to_text(self) -> None:
        adapter = FakeAdapter()
        raw = json.dumps({"finalAnswer": "   ", "rationale": "r"})
        adapter.script("orc", Reply(text=raw))
        playground, _, _ = _make_playground(adapter=adapter)
        await _compare(playground=playground)

        run = await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)

        assert run.state == RunState.SYNTHESIS_SETTLED
        assert run.final_answer == raw
        assert run.rationale == ""

    async def test_targets_selected_run(self) -> None:
        playground, _, _ = _make_playground()
        first = await _compare(playground=playground)
        second = await _compare(playground=playground)
        playground.select(mode=Mode.COMPARE, run_id=first.id)

        run = await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)

        assert run.id == first.id
        assert playground.ledger.get(run_id=second.id).final_answer is None

    async def test_without_compare_run_is_rejected(self) -> None:
        playground, adapter, _ = _make_playground()

        with pytest.raises(InvalidRequestError):
            await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)

        assert adapter.calls == []

    async def test_non_compare_run_is_rejected(self) -> None:
        playground, _, _ = _make_playground()
        run = await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)

        with pytest.raises(InvalidRequestError, match="compare"):
            await playground.orchestrate(
                orchestrator_model_id="orc", config=_CONFIG, run_id=run.id
            )

    async def test_unknown_run_id_raises(self) -> None:
        playground, _, _ = _make_playground()

        with pytest.raises(RunNotFoundError):
            await playground.orchestrate(
                orchestrator_model_id="orc", config=_CONFIG, run_id="missing"
            )


# ---------------------------------------------------------------------------
# phase failures
# ---------------------------------------------------------------------------


class TestPhaseFailure:
    async def test_raising_evaluation_leaves_settled_run(self) -> None:
        playground, _, observer = _make_playground()

        with patch.object(
            EvaluationAggregator,
            "evaluate_multi",
            side_effect=RuntimeError("judge pool exploded"),
        ):
            with pytest.raises(RuntimeError, match="judge pool exploded"):
                await playground.multi_judge(
                    primary_model_ids=["m1", "m2"],
                    judge_model_ids=["j1", "j2"],
                    prompt="q",
                    config=_CONFIG,
                )

        run = playground.runs(mode=Mode.MULTI_JUDGE)[0]
        assert run.state == RunState.EVALUATION_SETTLED
        assert not run.cancelled
        assert [item.text for item in run.envelopes[Phase.PRIMARY].items] == [
            "m1 answer",
            "m2 answer",
        ]
        judges = run.envelopes[Phase.JUDGE_MULTI].items
        assert not any(item.is_placeholder for item in judges)
        assert all(
            item.error == "Phase raised RuntimeError: judge pool exploded"
            for item in judges
        )
        assert observer.failed[0].state == "evaluation_settled"

    async def test_raising_synthesis_can_be_rerun(self) -> None:
        adapter = FakeAdapter()
        adapter.script("orc", Reply(text=_synthesis("Paris")))
        playground, _, _ = _make_playground(adapter=adapter)
        await _compare(playground=playground)

        with patch.object(
            Synthesizer, "orchestrate", side_effect=ValueError("bad payload")
        ):
            with pytest.raises(ValueError):
                await playground.orchestrate(
                    orchestrator_model_id="orc", config=_CONFIG
                )

        failed = playground.ledger.active(mode=Mode.COMPARE)
        assert failed is not None
        assert failed.state == RunState.SYNTHESIS_SETTLED
        assert failed.envelopes[Phase.ORCHESTRATE].items[0].error is not None

        run = await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)
        assert run.state == RunState.SYNTHESIS_SETTLED
        assert run.final_answer == "Paris"


# ---------------------------------------------------------------------------
# cancel
# ---------------------------------------------------------------------------


class TestCancel:
    async def test_cancel_during_primary_discards_results(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="late", delay=0.2))
        adapter.script("m2", Reply(text="late", delay=0.2))
        playground, _, observer = _make_playground(adapter=adapter)

        task = asyncio.create_task(_compare(playground=playground))
        await _wait_for_calls(adapter=adapter, count=2)
        cancelled = playground.cancel(run_id="run-1")
        run = await task

        assert cancelled.cancelled
        assert run.cancelled
        assert run.state == RunState.PRIMARY_SETTLED
        items = run.envelopes[Phase.PRIMARY].items
        assert [item.error for item in items] == [CANCELLED_ERROR, CANCELLED_ERROR]
        assert sorted(adapter.cancelled) == ["m1", "m2"]
        assert observer.applied == []
        assert observer.cancelled[0].run_id == "run-1"

    async def test_cancelled_multi_judge_never_calls_judges(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(delay=0.2))
        playground, _, _ = _make_playground(adapter=adapter)

        task = asyncio.create_task(
            playground.multi_judge(
                primary_model_ids=["m1"],
                judge_model_ids=["j1"],
                prompt="q",
                config=_CONFIG,
            )
        )
        await _wait_for_calls(adapter=adapter, count=1)
        playground.cancel(run_id="run-1")
        run = await task

        assert adapter.calls_for(model_id="j1") == []
        assert run.envelopes[Phase.JUDGE_MULTI].items[0].error == CANCELLED_ERROR

    async def test_cancel_during_synthesis(self) -> None:
        adapter = FakeAdapter()
        adapter.script("orc", Reply(text=_synthesis("late"), delay=0.2))
        playground, _, _ = _make_playground(adapter=adapter)
        await _compare(playground=playground)

        task = asyncio.create_task(
            playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)
        )
        await _wait_for_calls(adapter=adapter, count=3)
        playground.cancel(run_id="run-1")
        run = await task

        assert run.state == RunState.SYNTHESIS_SETTLED
        assert run.final_answer is None
        assert run.envelopes[Phase.PRIMARY].items[0].ok
        assert run.envelopes[Phase.ORCHESTRATE].items[0].error == CANCELLED_ERROR

    async def test_cancelled_run_cannot_be_orchestrated(self) -> None:
        playground, _, _ = _make_playground()
        run = await _compare(playground=playground)
        playground.cancel(run_id=run.id)

        with pytest.raises(InvalidRequestError, match="cancelled"):
            await playground.orchestrate(orchestrator_model_id="orc", config=_CONFIG)

    async def test_cancelling_twice_is_a_no_op(self) -> None:
        playground, _, _ = _make_playground()
        run = await _compare(playground=playground)

        first = playground.cancel(run_id=run.id)
        second = playground.cancel(run_id=run.id)

        assert first == second

    async def test_settled_outputs_survive_cancel(self) -> None:
        adapter = FakeAdapter()
        adapter.script("m1", Reply(text="Paris"))
        playground, _, _ = _make_playground(adapter=adapter)
        run = await _compare(playground=playground, model_ids=["m1"])

        cancelled = playground.cancel(run_id=run.id)

        assert cancelled.envelopes[Phase.PRIMARY].items[0].text == "Paris"

    async def test_unknown_run_raises(self) -> None:
        playground, _, _ = _make_playground()

        with pytest.raises(RunNotFoundError):
            playground.cancel(run_id="missing")


# ---------------------------------------------------------------------------
# runs / clear
# ---------------------------------------------------------------------------


class TestClear:
    async def test_clear_affects_only_one_mode(self) -> None:
        playground, _, observer = _make_playground()
        await _compare(playground=playground)
        await playground.chat(model_id="m1", prompt="Hi", config=_CONFIG)

        removed = playground.clear(mode=Mode.COMPARE)

        assert removed == 1
        assert playground.runs(mode=Mode.COMPARE) == []
        assert len(playground.runs(mode=Mode.SINGLE)) == 1
        assert observer.cleared[0].mode == "compare"
        assert observer.cleared[0].count == 1
