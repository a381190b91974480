"""Errors raised while reading an engine config file."""

from pathlib import Path

from multi_eval.core.errors import MultiEvalError


class ConfigError(MultiEvalError):
    """Base for every config failure; the CLI exits 1 on any of them."""


class ConfigLoadError(ConfigError):
    """The file is missing, unreadable, or not a YAML mapping."""

    def __init__(self, path: Path, reason: str = "file not found") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load config: {reason}: {path}")


class MissingEnvVarsError(ConfigError):
    """Every unset ${VAR} without a default, reported together."""

    def __init__(self, missing_vars: list[str]) -> None:
        self.missing_vars = sorted(missing_vars)
        super().__init__(
            "Failed to load config: missing environment variables: "
            + ", ".join(self.missing_vars)
        )


class ConfigValidationError(ConfigError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to validate config: {reason}")
