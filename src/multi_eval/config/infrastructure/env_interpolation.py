"""${VAR} and ${VAR:-default} substitution over raw YAML data."""

import os
import re

# Group 1 is the variable name; group 2 (optional) is the fallback after ":-".
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def collect_missing_vars(data: RawValue) -> list[str]:
    """Return every referenced variable that is unset and has no default.

    Names are returned once each, in first-seen order.
    """
    missing: list[str] = []
    for text in _strings(data):
        for match in _ENV_VAR_PATTERN.finditer(text):
            name, default = match.group(1), match.group(2)
            if default is None and name not in os.environ and name not in missing:
                missing.append(name)
    return missing


def interpolate(data: RawValue) -> RawValue:
    """Return a copy of data with every reference substituted.

    Call `collect_missing_vars` first; an unset variable without a default
    raises KeyError here.
    """
    if isinstance(data, str):
        return _ENV_VAR_PATTERN.sub(_substitute, data)
    if isinstance(data, list):
        return [interpolate(item) for item in data]
    if isinstance(data, dict):
        return {key: interpolate(value) for key, value in data.items()}
    return data


def _substitute(match: re.Match[str]) -> str:
    name, default = match.group(1), match.group(2)
    if name in os.environ:
        return os.environ[name]
    if default is not None:
        return default
    raise KeyError(name)


def _strings(data: RawValue) -> list[str]:
    if isinstance(data, str):
        return [data]
    if isinstance(data, list):
        return [s for item in data for s in _strings(item)]
    if isinstance(data, dict):
        return [s for value in data.values() for s in _strings(value)]
    return []
