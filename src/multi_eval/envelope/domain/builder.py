"""Envelope builder: wraps settled items with phase metadata."""

from typing import Any

from multi_eval.envelope.domain.envelope import Envelope, Phase
from multi_eval.envelope.domain.item import ResultItem, ResultKind


def build_envelope(
    phase: Phase,
    items: list[ResultItem],
    extra_meta: dict[str, Any] | None = None,
) -> Envelope:
    """Return an Envelope whose meta summarizes the settled items.

    meta always carries total/succeeded/failed counts. An ``errors`` list
    (position, model id, message) is added only when at least one item
    failed. ``extra_meta`` keys are merged last.
    """
    errors = [
        {"index": idx, "modelId": item.model_id, "error": item.error}
        for idx, item in enumerate(items)
        if item.error is not None
    ]
    meta: dict[str, Any] = {
        "total": len(items),
        "succeeded": len(items) - len(errors),
        "failed": len(errors),
    }
    if errors:
        meta["errors"] = errors
    if extra_meta:
        meta.update(extra_meta)
    return Envelope(phase=phase, items=list(items), meta=meta)


def build_placeholder_envelope(
    phase: Phase, kind: ResultKind, model_ids: list[str]
) -> Envelope:
    """Return the envelope shown while a phase is still running.

    Every slot holds a 'Loading...' item; meta marks the envelope pending
    so it is never mistaken for settled output.
    """
    items = [ResultItem.placeholder(kind=kind, model_id=m) for m in model_ids]
    return Envelope(
        phase=phase, items=items, meta={"total": len(items), "pending": True}
    )
