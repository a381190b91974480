"""Tests for StructlogConfigObserver event names and fields."""

from structlog.testing import capture_logs

from multi_eval.config.infrastructure.observer import StructlogConfigObserver


class TestStructlogConfigObserver:
    def test_config_loaded_event(self) -> None:
        with capture_logs() as logs:
            StructlogConfigObserver().config_loaded(
                name="playground", version="1", num_models=3
            )

        assert logs[0]["event"] == "config.loaded"
        assert logs[0]["component"] == "config"
        assert logs[0]["models"] == 3

    def test_high_temperature_warning_event(self) -> None:
        with capture_logs() as logs:
            StructlogConfigObserver().config_high_temperature_warning(
                temperature=1.5
            )

        assert logs == [
            {
                "event": "config.high_temperature_warning",
                "component": "config",
                "temperature": 1.5,
                "log_level": "warning",
            }
        ]
