"""AssessmentMatrix: judge x primary view over a multi-judge envelope."""

from dataclasses import dataclass

from multi_eval.envelope.domain.envelope import Envelope
from multi_eval.evaluation.domain.assessment import JudgeAssessment, RiskLabel


@dataclass(frozen=True)
class JudgeRow:
    """One judge's verdicts, keyed by target model id.

    A target missing from ``cells`` was not assessed by this judge. When the
    judge call itself failed, ``error`` is set and ``cells`` is empty.
    """

    judge_model_id: str
    cells: dict[str, JudgeAssessment]
    error: str | None


class AssessmentMatrix:
    """Read-only lookup of verdicts by (judge, target).

    Absence is data: a missing cell returns None and never counts as LOW.
    """

    def __init__(self, primary_model_ids: list[str], rows: list[JudgeRow]) -> None:
        self._primary_model_ids = list(dict.fromkeys(primary_model_ids))
        self._rows = rows

    @classmethod
    def from_envelope(
        cls, envelope: Envelope, primary_model_ids: list[str]
    ) -> "AssessmentMatrix":
        rows: list[JudgeRow] = []
        for item in envelope.items:
            cells: dict[str, JudgeAssessment] = {}
            if item.ok and item.structured is not None:
                for raw in item.structured.get("assessments", []):
                    assessment = JudgeAssessment.model_validate(raw)
                    cells.setdefault(assessment.target_model_id, assessment)
            rows.append(
                JudgeRow(judge_model_id=item.model_id, cells=cells, error=item.error)
            )
        return cls(primary_model_ids=primary_model_ids, rows=rows)

    @property
    def rows(self) -> list[JudgeRow]:
        return list(self._rows)

    @property
    def primary_model_ids(self) -> list[str]:
        return list(self._primary_model_ids)

    def cell(self, judge_model_id: str, target_model_id: str) -> JudgeAssessment | None:
        for row in self._rows:
            if row.judge_model_id == judge_model_id:
                return row.cells.get(target_model_id)
        return None

    def label(self, judge_model_id: str, target_model_id: str) -> RiskLabel | None:
        assessment = self.cell(
            judge_model_id=judge_model_id, target_model_id=target_model_id
        )
        if assessment is None or assessment.error is not None:
            return None
        return assessment.risk_label

    def missing(self) -> list[tuple[str, str]]:
        """(judge, target) pairs with no verdict, including all of a failed judge."""
        return [
            (row.judge_model_id, target)
            for row in self._rows
            for target in self._primary_model_ids
            if target not in row.cells
        ]

    def highest_risk(self, target_model_id: str) -> RiskLabel | None:
        """Worst label any judge gave the target, or None if no judge assessed it."""
        labels = [
            label
            for row in self._rows
            if (
                label := self.label(
                    judge_model_id=row.judge_model_id, target_model_id=target_model_id
                )
            )
            is not None
        ]
        if not labels:
            return None
        return max(labels, key=lambda lbl: lbl.severity)
