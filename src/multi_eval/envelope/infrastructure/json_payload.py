"""Extracts a JSON object from free-form model text."""

import json
import re
from typing import Any

from multi_eval.envelope.infrastructure.errors import AggregationParseError

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def extract_json_object(text: str, role: str) -> dict[str, Any]:
    """Return the first JSON object found in text.

    Tries, in order: the whole text, the body of each fenced code block, and
    the outermost ``{...}`` span. Models routinely wrap JSON in prose or
    markdown fences even when asked not to.

    Raises:
        AggregationParseError: if no candidate decodes to a JSON object.
    """
    candidates = [text.strip()]
    candidates.extend(m.group(1).strip() for m in _FENCE_PATTERN.finditer(text))
    start, end = text.find("{"), text.rfind("}")
    if 0 <= start < end:
        candidates.append(text[start : end + 1])

    for candidate in candidates:
        if not candidate:
            continue
        try:
            decoded = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(decoded, dict):
            return decoded

    raise AggregationParseError(role=role, reason="no JSON object found in response")
