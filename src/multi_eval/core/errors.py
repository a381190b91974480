"""Base exception class for all multi-eval-specific errors."""


class MultiEvalError(Exception):
    """Base class for all multi-eval errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable


class InvalidRequestError(MultiEvalError):
    """Raised when a call cannot be dispatched at all.

    Always surfaced synchronously, before any adapter invocation happens.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to dispatch request: {reason}")
        self.reason = reason


class EmptyModelListError(InvalidRequestError):
    """Raised when a phase is requested with no model identifiers."""

    def __init__(self, phase: str) -> None:
        super().__init__(f"phase '{phase}' requires at least one model id")
        self.phase = phase


class UnknownModelError(InvalidRequestError):
    """Raised when a model identifier does not resolve to a registered adapter."""

    def __init__(self, model_id: str) -> None:
        super().__init__(f"unknown model '{model_id}'")
        self.model_id = model_id
