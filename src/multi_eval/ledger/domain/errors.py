"""Error types raised by the run ledger."""

from multi_eval.core.errors import InvalidRequestError, MultiEvalError


class RunNotFoundError(MultiEvalError):
    """Raised when a run id is not present in the ledger."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"Failed to find run '{run_id}'")


class RunStateError(InvalidRequestError):
    """Raised when a run cannot move to the requested state."""

    def __init__(self, run_id: str, current: str, requested: str) -> None:
        self.run_id = run_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"run '{run_id}' cannot move from '{current}' to '{requested}'"
        )
