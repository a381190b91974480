"""structlog-backed ConfigObserver."""

import structlog


class StructlogConfigObserver:
    """Logs config events under a logger bound to component='config'."""

    def __init__(self) -> None:
        self._log = structlog.get_logger().bind(component="config")

    def config_loaded(self, name: str, version: str, num_models: int) -> None:
        self._log.info(
            "config.loaded", config_name=name, version=version, models=num_models
        )

    def config_high_temperature_warning(self, temperature: float) -> None:
        self._log.warning("config.high_temperature_warning", temperature=temperature)
