"""JudgeAssessment: one judge's risk verdict on one primary output."""

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

RISK_SCORE_MIN = 0.0
RISK_SCORE_MAX = 100.0


class RiskLabel(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {RiskLabel.LOW: 0, RiskLabel.MEDIUM: 1, RiskLabel.HIGH: 2}


class JudgeAssessment(BaseModel):
    """Immutable risk verdict keyed by the primary model it judges.

    risk_score is clamped into [0, 100] rather than rejected. A verdict
    without an error must carry both a score and a label; there is no
    implicit default label.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_model_id: str = Field(alias="targetModelId", min_length=1)
    risk_score: float | None = None
    risk_label: RiskLabel | None = None
    failure_modes: list[str] = Field(default_factory=list)
    evidence: list[str] = Field(default_factory=list)
    notes: str = ""
    error: str | None = None

    @field_validator("risk_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> Any:
        if value is None or isinstance(value, bool):
            return value
        try:
            score = float(value)
        except (TypeError, ValueError):
            return value
        return min(RISK_SCORE_MAX, max(RISK_SCORE_MIN, score))

    @field_validator("risk_label", mode="before")
    @classmethod
    def _normalize_label(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("failure_modes", "evidence", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value

    @model_validator(mode="after")
    def _verdict_complete(self) -> Self:
        if self.error is None and (self.risk_score is None or self.risk_label is None):
            raise ValueError(
                f"assessment of '{self.target_model_id}' needs risk_score and"
                " risk_label unless error is set"
            )
        return self

