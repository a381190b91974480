"""Observer port for the config domain."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, version: str, num_models: int) -> None: ...

    def config_high_temperature_warning(self, temperature: float) -> None: ...
