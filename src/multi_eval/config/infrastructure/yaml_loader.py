"""YAML config loader: parses, interpolates env vars, validates, emits events."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from multi_eval.config.domain.config import EngineConfig
from multi_eval.config.domain.observer import ConfigObserver
from multi_eval.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)
from multi_eval.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)

_HIGH_TEMPERATURE = 1.0


class YamlConfigLoader:
    """Loads, interpolates, validates, and returns an EngineConfig from a YAML file."""

    def __init__(self, observer: ConfigObserver) -> None:
        self._observer = observer

    def load(self, path: Path) -> EngineConfig:
        """
        Load, interpolate, validate, and return an EngineConfig from a YAML file.

        Raises:
            ConfigLoadError: if the file is missing or is not valid YAML.
            MissingEnvVarsError: if any ${ENV_VAR} without a default is unset
                (all collected first).
            ConfigValidationError: if the schema is violated.
        """
        raw = _parse_yaml(path=path)
        _check_missing_env_vars(raw=raw)
        cfg = _build_config(resolved=interpolate(raw))
        _emit_warnings(cfg=cfg, observer=self._observer)
        self._observer.config_loaded(
            name=cfg.name, version=cfg.version, num_models=len(cfg.models)
        )
        return cfg


def _parse_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except FileNotFoundError as exc:
        raise ConfigLoadError(path=path) from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(path=path, reason="invalid YAML") from exc
    if not isinstance(raw, dict):
        raise ConfigLoadError(path=path, reason="top level must be a mapping")
    return raw


def _check_missing_env_vars(raw: Any) -> None:
    missing = collect_missing_vars(raw)
    if missing:
        raise MissingEnvVarsError(missing_vars=missing)


def _build_config(resolved: Any) -> EngineConfig:
    try:
        return EngineConfig.model_validate(resolved)
    except ValidationError as exc:
        raise ConfigValidationError(reason=str(exc)) from exc


def _emit_warnings(cfg: EngineConfig, observer: ConfigObserver) -> None:
    if cfg.generation.temperature > _HIGH_TEMPERATURE:
        observer.config_high_temperature_warning(
            temperature=cfg.generation.temperature
        )
