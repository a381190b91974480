"""Error types raised by provider infrastructure."""

from multi_eval.core.errors import MultiEvalError


class ProviderInvocationError(MultiEvalError):
    """Raised inside an adapter when the backend call fails or returns nothing usable.

    Never escapes the adapter: invoke() converts it into ResultItem.error.
    """

    def __init__(self, reason: str, retriable: bool = False) -> None:
        self.reason = reason
        super().__init__(f"Failed to invoke provider: {reason}", retriable=retriable)


class ProviderTypeNotSupportedError(MultiEvalError):
    """Raised when a model config names an adapter type that is not known."""

    def __init__(self, provider_type: str) -> None:
        super().__init__(
            f"Failed to create adapter: unsupported provider type '{provider_type}'"
        )
