"""Tests for ${VAR} / ${VAR:-default} interpolation."""

import pytest

from multi_eval.config.infrastructure.env_interpolation import (
    collect_missing_vars,
    interpolate,
)


class TestCollectMissingVars:
    def test_unset_variable_without_default_is_missing(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("ABSENT_VAR", raising=False)
        assert collect_missing_vars({"key": "${ABSENT_VAR}"}) == ["ABSENT_VAR"]

    def test_variable_with_default_is_not_missing(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("ABSENT_VAR", raising=False)
        assert collect_missing_vars({"key": "${ABSENT_VAR:-fallback}"}) == []

    def test_nested_lists_and_dicts_are_scanned_once_per_name(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("A_VAR", raising=False)
        monkeypatch.delenv("B_VAR", raising=False)
        data = {"x": ["${A_VAR}", {"y": "${B_VAR}-${A_VAR}"}], "n": 3}

        assert collect_missing_vars(data) == ["A_VAR", "B_VAR"]


class TestInterpolate:
    def test_set_variable_is_substituted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOST_VAR", "example.org")
        assert interpolate({"url": "https://${HOST_VAR}/v1"}) == {
            "url": "https://example.org/v1"
        }

    def test_default_is_used_when_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("PORT_VAR", raising=False)
        assert interpolate("${PORT_VAR:-8080}") == "8080"

    def test_empty_default_is_allowed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EMPTY_VAR", raising=False)
        assert interpolate("[${EMPTY_VAR:-}]") == "[]"

    def test_non_string_values_pass_through(self) -> None:
        assert interpolate({"n": 1, "b": True, "f": 0.5, "z": None}) == {
            "n": 1,
            "b": True,
            "f": 0.5,
            "z": None,
        }
