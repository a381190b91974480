"""create_adapter: maps ModelConfig.type to the correct adapter implementation."""

import litellm

from multi_eval.config.domain.model import ModelConfig
from multi_eval.provider.domain.adapter import ProviderAdapter
from multi_eval.provider.domain.observer import ProviderObserver
from multi_eval.provider.infrastructure.errors import ProviderTypeNotSupportedError
from multi_eval.provider.infrastructure.litellm import LiteLLMAdapter

_SUPPORTED_TYPE = "litellm"


def create_adapter(config: ModelConfig, observer: ProviderObserver) -> ProviderAdapter:
    """Return the adapter for the given ModelConfig.

    Raises:
        ProviderTypeNotSupportedError: if config.type is not a known adapter type.
    """
    if config.type == _SUPPORTED_TYPE:
        litellm.suppress_debug_info = True
        return LiteLLMAdapter(config=config, observer=observer)

    raise ProviderTypeNotSupportedError(provider_type=config.type)
