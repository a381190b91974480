"""Run — one user-initiated prompt and every phase that followed it."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.ledger.domain.errors import RunStateError

type RunId = str


class Mode(StrEnum):
    COMPARE = "compare"
    MULTI_JUDGE = "multi_judge"
    SINGLE_JUDGE = "single_judge"
    SINGLE = "single"


class RunState(StrEnum):
    CREATED = "created"
    PRIMARY_PENDING = "primary_pending"
    PRIMARY_SETTLED = "primary_settled"
    EVALUATION_PENDING = "evaluation_pending"
    EVALUATION_SETTLED = "evaluation_settled"
    SYNTHESIS_PENDING = "synthesis_pending"
    SYNTHESIS_SETTLED = "synthesis_settled"

    def can_transition(self, to: "RunState") -> bool:
        return to in _TRANSITIONS[self]

    @property
    def pending(self) -> bool:
        return self in _PENDING_TO_SETTLED

    @property
    def settled_counterpart(self) -> "RunState":
        """The state a pending phase lands in once it stops, however it stops."""
        return _PENDING_TO_SETTLED.get(self, self)


# Synthesis may be re-run; a settled primary may start another chat turn.
_TRANSITIONS: dict[RunState, frozenset[RunState]] = {
    RunState.CREATED: frozenset({RunState.PRIMARY_PENDING}),
    RunState.PRIMARY_PENDING: frozenset({RunState.PRIMARY_SETTLED}),
    RunState.PRIMARY_SETTLED: frozenset(
        {
            RunState.PRIMARY_PENDING,
            RunState.EVALUATION_PENDING,
            RunState.SYNTHESIS_PENDING,
        }
    ),
    RunState.EVALUATION_PENDING: frozenset({RunState.EVALUATION_SETTLED}),
    RunState.EVALUATION_SETTLED: frozenset(),
    RunState.SYNTHESIS_PENDING: frozenset({RunState.SYNTHESIS_SETTLED}),
    RunState.SYNTHESIS_SETTLED: frozenset({RunState.SYNTHESIS_PENDING}),
}

_PENDING_TO_SETTLED: dict[RunState, RunState] = {
    RunState.PRIMARY_PENDING: RunState.PRIMARY_SETTLED,
    RunState.EVALUATION_PENDING: RunState.EVALUATION_SETTLED,
    RunState.SYNTHESIS_PENDING: RunState.SYNTHESIS_SETTLED,
}


def utc_now() -> datetime:
    return datetime.now(UTC)


class Message(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    role: Literal["user", "assistant"]
    content: str
    model_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class Run(BaseModel):
    """Immutable snapshot of a run.

    The ledger stores the latest snapshot under ``id``; every change goes
    through ``with_changes`` or ``advance`` and yields a new snapshot.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    id: RunId = Field(min_length=1)
    mode: Mode
    prompt: str
    created_at: datetime = Field(default_factory=utc_now)
    state: RunState = RunState.CREATED
    cancelled: bool = False
    model_ids: dict[Phase, list[str]] = Field(default_factory=dict)
    envelopes: dict[Phase, Envelope] = Field(default_factory=dict)
    orchestrator_model_id: str | None = None
    orchestration_prompt: str | None = None
    final_answer: str | None = None
    rationale: str | None = None
    thread: list[Message] = Field(default_factory=list)

    def with_changes(self, **changes: Any) -> "Run":
        return self.model_copy(update=changes)

    def advance(self, to: RunState, **changes: Any) -> "Run":
        """Return a copy in state ``to`` with ``changes`` applied.

        Raises:
            RunStateError: if the current state cannot move to ``to``.
        """
        if not self.state.can_transition(to):
            raise RunStateError(
                run_id=self.id, current=self.state.value, requested=to.value
            )
        return self.model_copy(update={**changes, "state": to})

    def envelope(self, phase: Phase) -> Envelope | None:
        return self.envelopes.get(phase)
