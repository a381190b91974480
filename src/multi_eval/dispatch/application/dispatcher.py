"""Dispatcher: runs one phase's adapter calls concurrently and collects results."""

import asyncio
import time
from dataclasses import dataclass

from multi_eval.config.domain.generation import GenerationConfig
from multi_eval.core.errors import EmptyModelListError
from multi_eval.dispatch.domain.observer import DispatchObserver
from multi_eval.envelope.domain.builder import build_envelope
from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.envelope.domain.item import ResultItem, ResultKind
from multi_eval.provider.domain.adapter import ProviderAdapter
from multi_eval.provider.domain.resolver import AdapterResolver


@dataclass(frozen=True)
class _PassRequest:
    """Arguments shared by every call in one dispatch pass."""

    phase: Phase
    prompt: str
    config: GenerationConfig
    kind: ResultKind
    instructions: str | None
    json_output: bool


class Dispatcher:
    """Fans a prompt out to N adapters and waits for every call to settle.

    There is no early return on the first failure or the first success. A
    failed, raising, or timed-out call becomes an error item in its own slot
    and never cancels its siblings.
    """

    def __init__(
        self,
        resolver: AdapterResolver,
        observer: DispatchObserver,
        timeout_seconds: float = 60.0,
        max_concurrent: int | None = None,
    ) -> None:
        self._resolver = resolver
        self._observer = observer
        self._timeout_seconds = timeout_seconds
        self._max_concurrent = max_concurrent

    async def run(
        self,
        phase: Phase,
        model_ids: list[str],
        prompt: str,
        config: GenerationConfig,
        kind: ResultKind = ResultKind.MODEL_OUTPUT,
        instructions: str | None = None,
        json_output: bool = False,
    ) -> Envelope:
        """Invoke every model in model_ids and return their items in input order.

        Duplicate ids are preserved: each occurrence is its own call.

        Raises:
            EmptyModelListError: if model_ids is empty.
            UnknownModelError: if any id is not registered. Both are raised
                before any adapter is invoked.
        """
        adapters = self.check(phase=phase, model_ids=model_ids)

        request = _PassRequest(
            phase=phase,
            prompt=prompt,
            config=config,
            kind=kind,
            instructions=instructions,
            json_output=json_output,
        )
        self._observer.dispatch_phase_started(
            phase=phase.value, model_ids=list(model_ids)
        )
        started_at = time.monotonic()

        sem = (
            asyncio.Semaphore(self._max_concurrent)
            if self._max_concurrent is not None
            else None
        )
        # One slot per requested id; each task writes only its own index.
        slots: list[ResultItem | None] = [None] * len(model_ids)

        async with asyncio.TaskGroup() as tg:
            for index, (model_id, adapter) in enumerate(zip(model_ids, adapters)):
                tg.create_task(
                    self._run_one(
                        sem=sem,
                        slots=slots,
                        index=index,
                        model_id=model_id,
                        adapter=adapter,
                        request=request,
                    )
                )

        items = [item for item in slots if item is not None]
        envelope = build_envelope(phase=phase, items=items)
        self._observer.dispatch_phase_completed(
            phase=phase.value,
            total=len(items),
            failed=len(envelope.failed),
            elapsed_seconds=time.monotonic() - started_at,
        )
        return envelope

    def check(self, phase: Phase, model_ids: list[str]) -> list[ProviderAdapter]:
        """Resolve every id without invoking anything.

        Raises:
            EmptyModelListError: if model_ids is empty.
            UnknownModelError: if any id is not registered.
        """
        if not model_ids:
            raise EmptyModelListError(phase=phase.value)
        return [self._resolver.resolve(model_id=m) for m in model_ids]

    async def _run_one(
        self,
        sem: asyncio.Semaphore | None,
        slots: list[ResultItem | None],
        index: int,
        model_id: str,
        adapter: ProviderAdapter,
        request: _PassRequest,
    ) -> None:
        """Fill slots[index] with the settled item for one call.

        The timeout starts once the semaphore is acquired, so queueing delay
        is never charged to the model.
        """
        if sem is None:
            item = await self._invoke(
                index=index, model_id=model_id, adapter=adapter, request=request
            )
        else:
            async with sem:
                item = await self._invoke(
                    index=index, model_id=model_id, adapter=adapter, request=request
                )

        slots[index] = item
        self._observer.dispatch_item_settled(
            phase=request.phase.value,
            index=index,
            model_id=model_id,
            latency_ms=item.latency_ms,
            error=item.error,
        )

    async def _invoke(
        self,
        index: int,
        model_id: str,
        adapter: ProviderAdapter,
        request: _PassRequest,
    ) -> ResultItem:
        self._observer.dispatch_item_started(
            phase=request.phase.value, index=index, model_id=model_id
        )
        start = time.monotonic()
        try:
            async with asyncio.timeout(self._timeout_seconds):
                return await adapter.invoke(
                    model_id=model_id,
                    prompt=request.prompt,
                    config=request.config,
                    kind=request.kind,
                    instructions=request.instructions,
                    json_output=request.json_output,
                )
        except TimeoutError:
            self._observer.dispatch_item_timed_out(
                phase=request.phase.value,
                index=index,
                model_id=model_id,
                timeout_seconds=self._timeout_seconds,
            )
            return ResultItem.failure(
                kind=request.kind,
                model_id=model_id,
                error=f"Timed out after {self._timeout_seconds:g}s",
                latency_ms=int(self._timeout_seconds * 1000),
            )
        except Exception as exc:  # noqa: BLE001
            # Adapters must not raise; if one does, contain it to its own slot.
            return ResultItem.failure(
                kind=request.kind,
                model_id=model_id,
                error=f"Adapter raised {type(exc).__name__}: {exc}",
                latency_ms=int((time.monotonic() - start) * 1000),
            )
