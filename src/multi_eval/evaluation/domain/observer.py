"""Observer port for the evaluation domain."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Events emitted while judges are parsed and reconciled with primary outputs."""

    def judge_response_parsed(
        self, judge_model_id: str, num_assessments: int
    ) -> None: ...

    def judge_response_parse_failed(self, judge_model_id: str, reason: str) -> None: ...

    def judge_targets_dropped(
        self, judge_model_id: str, target_model_ids: list[str]
    ) -> None: ...

    def judge_targets_missing(
        self, judge_model_id: str, target_model_ids: list[str]
    ) -> None: ...
