"""ModelRegistry: resolves model identifiers to adapters built from config."""

from dataclasses import dataclass

from multi_eval.config.domain.model import ModelConfig
from multi_eval.core.errors import UnknownModelError
from multi_eval.provider.domain.adapter import ProviderAdapter
from multi_eval.provider.domain.observer import ProviderObserver
from multi_eval.provider.infrastructure.factory import create_adapter


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    display_name: str
    provider: str


class ModelRegistry:
    """Satisfies the AdapterResolver protocol.

    Adapters are created eagerly so that a bad ``type`` in config fails at
    startup rather than on the first request that names the model.
    """

    def __init__(
        self, adapters: dict[str, ProviderAdapter], catalog: list[CatalogEntry]
    ) -> None:
        self._adapters = adapters
        self._catalog = catalog

    @classmethod
    def from_config(
        cls, models: dict[str, ModelConfig], observer: ProviderObserver
    ) -> "ModelRegistry":
        adapters = {
            model_id: create_adapter(config=cfg, observer=observer)
            for model_id, cfg in models.items()
        }
        catalog = [
            CatalogEntry(
                id=model_id,
                display_name=cfg.display_name or model_id,
                provider=cfg.provider or cfg.model.split("/", 1)[0],
            )
            for model_id, cfg in models.items()
        ]
        return cls(adapters=adapters, catalog=catalog)

    def resolve(self, model_id: str) -> ProviderAdapter:
        try:
            return self._adapters[model_id]
        except KeyError:
            raise UnknownModelError(model_id=model_id) from None

    def catalog(self) -> list[CatalogEntry]:
        return list(self._catalog)
