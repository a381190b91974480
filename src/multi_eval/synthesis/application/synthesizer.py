"""Synthesizer — merges primary outputs into one final answer."""

from pydantic import ValidationError

from multi_eval.config.domain.dispatch import SynthesisConfig
from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.dispatch.application.dispatcher import Dispatcher
from multi_eval.envelope.domain.bundle import render_candidates, require_settled
from multi_eval.envelope.domain.envelope import Phase
from multi_eval.envelope.domain.item import ResultItem, ResultKind
from multi_eval.envelope.infrastructure.errors import AggregationParseError
from multi_eval.envelope.infrastructure.json_payload import extract_json_object
from multi_eval.synthesis.application.prompts import ORCHESTRATOR_INSTRUCTIONS
from multi_eval.synthesis.domain.observer import SynthesisObserver
from multi_eval.synthesis.domain.synthesis import Synthesis


class Synthesizer:
    """Runs the orchestrator model over a settled set of primary outputs.

    The orchestrator is asked for ``{finalAnswer, rationale}``. A response
    that does not decode to that shape is not an error: its plain text
    becomes the final answer with an empty rationale.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        observer: SynthesisObserver,
        config: SynthesisConfig,
    ) -> None:
        self._dispatcher = dispatcher
        self._observer = observer
        self._config = config

    async def orchestrate(
        self,
        orchestrator_model_id: str,
        prompt: str,
        primary_items: list[ResultItem],
        config: GenerationConfig,
        synthesis_instruction: str | None = None,
    ) -> ResultItem:
        """Return a synthesis item whose structured payload is {finalAnswer, rationale}.

        The call is capped at the configured synthesis token budget whatever
        ``config.max_tokens`` says.

        Raises:
            InvalidRequestError: if primary_items is empty or still pending,
                or if the orchestrator id is unknown.
        """
        require_settled(items=primary_items, phase=Phase.ORCHESTRATE.value)
        instruction = synthesis_instruction or self._config.default_instruction
        bundle = render_candidates(prompt=prompt, items=primary_items)

        dispatched = await self._dispatcher.run(
            phase=Phase.ORCHESTRATE,
            model_ids=[orchestrator_model_id],
            prompt=f"{bundle}\n\n## Instruction\n{instruction}",
            config=config.with_max_tokens(self._config.max_tokens),
            kind=ResultKind.SYNTHESIS,
            instructions=ORCHESTRATOR_INSTRUCTIONS,
            json_output=True,
        )
        item = dispatched.items[0]
        if not item.ok:
            self._observer.synthesis_failed(
                orchestrator_model_id=orchestrator_model_id, reason=item.error or ""
            )
            return item

        synthesis = self._parse(
            orchestrator_model_id=orchestrator_model_id, text=item.text
        )
        return ResultItem.success(
            kind=ResultKind.SYNTHESIS,
            model_id=item.model_id,
            text=synthesis.final_answer,
            latency_ms=item.latency_ms,
            structured=synthesis.model_dump(by_alias=True),
        )

    def _parse(self, orchestrator_model_id: str, text: str) -> Synthesis:
        try:
            payload = extract_json_object(text=text, role="orchestrator")
            synthesis = Synthesis.model_validate(payload)
        except AggregationParseError as exc:
            reason = exc.reason
        except ValidationError as exc:
            reason = f"unexpected payload shape ({exc.error_count()} error(s))"
        else:
            self._observer.synthesis_parsed(
                orchestrator_model_id=orchestrator_model_id
            )
            return synthesis

        self._observer.synthesis_fell_back_to_text(
            orchestrator_model_id=orchestrator_model_id, reason=reason
        )
        return Synthesis(final_answer=text.strip(), rationale="")
