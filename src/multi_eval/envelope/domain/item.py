"""ResultItem: the canonical element of every response envelope."""

from enum import StrEnum
from typing import Any, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

PLACEHOLDER_TEXT = "Loading..."


class ResultKind(StrEnum):
    MODEL_OUTPUT = "model_output"
    JUDGE_ASSESSMENT = "judge_assessment"
    SYNTHESIS = "synthesis"


class Content(BaseModel):
    """A text body tagged with its format."""

    model_config = ConfigDict(frozen=True)

    format: Literal["markdown"] = "markdown"
    value: str


class ResultItem(BaseModel):
    """One adapter call's outcome, normalized across providers.

    Exactly one of {non-empty content, error} is set. A failed item carries
    no content; callers render the error text in its place. ``pending`` marks
    a placeholder whose call has not settled; a model that really answers
    "Loading..." is still a settled item.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    kind: ResultKind = ResultKind.MODEL_OUTPUT
    model_id: str = Field(min_length=1)
    latency_ms: int = Field(default=0, ge=0)
    content: Content | None = None
    structured: dict[str, Any] | None = None
    error: str | None = None
    pending: bool = False

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_text(cls, data: Any) -> Any:
        # Clients may send {modelId, text, latencyMs, error} instead of a
        # tagged content body.
        if not isinstance(data, dict) or "text" not in data or "content" in data:
            return data
        data = dict(data)
        text = data.pop("text")
        if not data.get("error") and text:
            data["content"] = {"format": "markdown", "value": text}
        return data

    @model_validator(mode="after")
    def _content_xor_error(self) -> Self:
        has_content = self.content is not None and self.content.value.strip() != ""
        has_error = self.error is not None
        if has_content == has_error:
            raise ValueError(
                "exactly one of non-empty content or error must be set"
                f" (model '{self.model_id}')"
            )
        return self

    @classmethod
    def success(
        cls,
        kind: ResultKind,
        model_id: str,
        text: str,
        latency_ms: int,
        structured: dict[str, Any] | None = None,
    ) -> "ResultItem":
        return cls(
            kind=kind,
            model_id=model_id,
            latency_ms=latency_ms,
            content=Content(value=text),
            structured=structured,
        )

    @classmethod
    def failure(
        cls, kind: ResultKind, model_id: str, error: str, latency_ms: int = 0
    ) -> "ResultItem":
        return cls(kind=kind, model_id=model_id, latency_ms=latency_ms, error=error)

    @classmethod
    def placeholder(cls, kind: ResultKind, model_id: str) -> "ResultItem":
        """The 'Loading...' stand-in written before a call starts."""
        return cls(
            kind=kind,
            model_id=model_id,
            content=Content(value=PLACEHOLDER_TEXT),
            pending=True,
        )

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def text(self) -> str:
        return self.content.value if self.content is not None else ""

    @property
    def is_placeholder(self) -> bool:
        return self.pending
