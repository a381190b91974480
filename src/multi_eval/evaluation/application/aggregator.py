"""EvaluationAggregator — runs judges over settled primary outputs."""

from typing import Any

from pydantic import ValidationError

from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.dispatch.application.dispatcher import Dispatcher
from multi_eval.envelope.domain.builder import build_envelope
from multi_eval.envelope.domain.bundle import render_candidates, require_settled
from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.envelope.domain.item import ResultItem, ResultKind
from multi_eval.envelope.infrastructure.errors import AggregationParseError
from multi_eval.envelope.infrastructure.json_payload import extract_json_object
from multi_eval.evaluation.application.prompts import (
    MULTI_JUDGE_INSTRUCTIONS,
    SINGLE_JUDGE_INSTRUCTIONS,
)
from multi_eval.evaluation.domain.assessment import JudgeAssessment
from multi_eval.evaluation.domain.observer import EvaluationObserver


class EvaluationAggregator:
    """Sends one bundle of primary outputs to judges and normalizes their verdicts.

    Judges run concurrently through the Dispatcher, so a slow or failing
    judge never affects its siblings. Parsing happens per judge: one
    malformed payload marks only that judge's item with an error.
    """

    def __init__(self, dispatcher: Dispatcher, observer: EvaluationObserver) -> None:
        self._dispatcher = dispatcher
        self._observer = observer

    async def evaluate_multi(
        self,
        judge_model_ids: list[str],
        prompt: str,
        primary_items: list[ResultItem],
        config: GenerationConfig,
    ) -> Envelope:
        """Return a judge_multi envelope with one item per judge, in input order.

        Each successful item carries ``structured.assessments`` (at most one
        verdict per submitted primary id) and ``structured.droppedTargets`` (ids
        the judge invented). Repeat verdicts for a target are listed under
        ``structured.duplicateTargets``. Raw judge text is kept under
        ``meta.raw`` keyed by position.

        Raises:
            InvalidRequestError: if primary_items is empty or still pending,
                or if judge_model_ids is empty or unknown.
        """
        require_settled(items=primary_items, phase=Phase.JUDGE_MULTI.value)
        dispatched = await self._dispatcher.run(
            phase=Phase.JUDGE_MULTI,
            model_ids=judge_model_ids,
            prompt=render_candidates(prompt=prompt, items=primary_items),
            config=config,
            kind=ResultKind.JUDGE_ASSESSMENT,
            instructions=MULTI_JUDGE_INSTRUCTIONS,
            json_output=True,
        )

        target_ids = list(dict.fromkeys(item.model_id for item in primary_items))
        items: list[ResultItem] = []
        raw: dict[str, str] = {}
        for index, item in enumerate(dispatched.items):
            if not item.ok:
                items.append(item)
                continue
            raw[str(index)] = item.text
            items.append(self._reconcile(item=item, target_ids=target_ids))

        return build_envelope(
            phase=Phase.JUDGE_MULTI,
            items=items,
            extra_meta={"raw": raw} if raw else None,
        )

    async def evaluate_single(
        self,
        evaluator_model_id: str,
        prompt: str,
        primary_items: list[ResultItem],
        config: GenerationConfig,
    ) -> ResultItem:
        """Return the evaluator's consolidated markdown report, unparsed."""
        require_settled(items=primary_items, phase=Phase.JUDGE_SINGLE.value)
        dispatched = await self._dispatcher.run(
            phase=Phase.JUDGE_SINGLE,
            model_ids=[evaluator_model_id],
            prompt=render_candidates(prompt=prompt, items=primary_items),
            config=config,
            kind=ResultKind.JUDGE_ASSESSMENT,
            instructions=SINGLE_JUDGE_INSTRUCTIONS,
        )
        return dispatched.items[0]

    def _reconcile(self, item: ResultItem, target_ids: list[str]) -> ResultItem:
        """Parse one judge's text and keep only verdicts on submitted targets."""
        try:
            entries = _parse_entries(text=item.text)
        except AggregationParseError as exc:
            self._observer.judge_response_parse_failed(
                judge_model_id=item.model_id, reason=exc.reason
            )
            return ResultItem.failure(
                kind=item.kind,
                model_id=item.model_id,
                error=str(exc),
                latency_ms=item.latency_ms,
            )

        assessments: list[JudgeAssessment] = []
        invalid: list[dict[str, Any]] = []
        dropped: list[str] = []
        duplicates: list[str] = []
        assessed: set[str] = set()
        for position, entry in enumerate(entries):
            try:
                assessment = JudgeAssessment.model_validate(entry)
            except ValidationError as exc:
                invalid.append({"index": position, "reason": _first_error(exc)})
                continue
            if assessment.target_model_id not in target_ids:
                dropped.append(assessment.target_model_id)
                continue
            # First verdict per target wins.
            if assessment.target_model_id in assessed:
                duplicates.append(assessment.target_model_id)
                continue
            assessed.add(assessment.target_model_id)
            assessments.append(assessment)

        if dropped:
            self._observer.judge_targets_dropped(
                judge_model_id=item.model_id, target_model_ids=dropped
            )
        missing = [t for t in target_ids if t not in assessed]
        if missing:
            self._observer.judge_targets_missing(
                judge_model_id=item.model_id, target_model_ids=missing
            )
        self._observer.judge_response_parsed(
            judge_model_id=item.model_id, num_assessments=len(assessments)
        )

        structured: dict[str, Any] = {
            "assessments": [
                a.model_dump(mode="json", by_alias=True) for a in assessments
            ],
            "droppedTargets": dropped,
        }
        if duplicates:
            structured["duplicateTargets"] = duplicates
        if invalid:
            structured["invalid"] = invalid
        return ResultItem.success(
            kind=item.kind,
            model_id=item.model_id,
            text=item.text,
            latency_ms=item.latency_ms,
            structured=structured,
        )


def _parse_entries(text: str) -> list[Any]:
    """Return the raw ``assessments`` entries from a judge response.

    Raises:
        AggregationParseError: if no JSON object is found or it has no
            ``assessments`` list.
    """
    payload = extract_json_object(text=text, role="judge")
    entries = payload.get("assessments")
    if not isinstance(entries, list):
        raise AggregationParseError(
            role="judge", reason="'assessments' must be a list"
        )
    return entries


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error["loc"])
    return f"{location}: {error['msg']}" if location else error["msg"]
