"""AdapterResolver Protocol: maps a model identifier to its adapter."""

from typing import Protocol

from multi_eval.provider.domain.adapter import ProviderAdapter


class AdapterResolver(Protocol):
    def resolve(self, model_id: str) -> ProviderAdapter:
        """Return the adapter for model_id.

        Raises:
            UnknownModelError: if model_id is not registered.
        """
        ...
