"""Renders a prompt and its primary outputs as one block for downstream models."""

from multi_eval.core.errors import InvalidRequestError
from multi_eval.envelope.domain.item import ResultItem


def render_candidates(prompt: str, items: list[ResultItem]) -> str:
    """Embed the original prompt and every primary output, failed ones included.

    Failed outputs appear as ``ERROR: <reason>`` so judges and orchestrators
    see the full set the caller submitted.
    """
    sections = [f"## Original Prompt\n{prompt}", "## Candidate Outputs"]
    for position, item in enumerate(items, start=1):
        body = item.text if item.ok else f"ERROR: {item.error}"
        sections.append(f"### Output {position} (model id: {item.model_id})\n{body}")
    return "\n\n".join(sections)


def require_settled(items: list[ResultItem], phase: str) -> None:
    """Reject a downstream phase whose inputs are missing or still loading.

    Raises:
        InvalidRequestError: if items is empty or any item is a placeholder.
    """
    if not items:
        raise InvalidRequestError(f"phase '{phase}' requires primary outputs")
    pending = [item.model_id for item in items if item.is_placeholder]
    if pending:
        raise InvalidRequestError(
            f"phase '{phase}' cannot start while outputs are pending: {pending}"
        )
