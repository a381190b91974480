"""Error types raised while parsing structured model payloads."""

from multi_eval.core.errors import MultiEvalError


class AggregationParseError(MultiEvalError):
    """Raised when a judge or orchestrator payload does not match its expected shape."""

    def __init__(self, role: str, reason: str) -> None:
        self.role = role
        self.reason = reason
        super().__init__(f"Failed to parse {role} response: {reason}")
