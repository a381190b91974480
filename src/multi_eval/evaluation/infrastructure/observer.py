"""Structlog implementation of the EvaluationObserver port."""

import structlog


class StructlogEvaluationObserver:
    """Delegates evaluation domain events to structlog.

    Satisfies the EvaluationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def judge_response_parsed(self, judge_model_id: str, num_assessments: int) -> None:
        self._log.info(
            "evaluation.judge_parsed",
            judge_model_id=judge_model_id,
            num_assessments=num_assessments,
        )

    def judge_response_parse_failed(self, judge_model_id: str, reason: str) -> None:
        self._log.error(
            "evaluation.judge_parse_failed",
            judge_model_id=judge_model_id,
            reason=reason,
        )

    def judge_targets_dropped(
        self, judge_model_id: str, target_model_ids: list[str]
    ) -> None:
        self._log.warning(
            "evaluation.judge_targets_dropped",
            judge_model_id=judge_model_id,
            target_model_ids=target_model_ids,
            message="Assessments referenced models that were not submitted",
        )

    def judge_targets_missing(
        self, judge_model_id: str, target_model_ids: list[str]
    ) -> None:
        self._log.warning(
            "evaluation.judge_targets_missing",
            judge_model_id=judge_model_id,
            target_model_ids=target_model_ids,
        )
