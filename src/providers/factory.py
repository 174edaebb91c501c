from __future__ import annotations

from collections.abc import Callable

from .base import ProviderAdapter
from .openai_responses import OpenAIAdapter
from .openrouter import OpenRouterAdapter
from .schema import ProviderAdapterConfig

AdapterBuilder = Callable[[ProviderAdapterConfig], ProviderAdapter]


def _build_openai(config: ProviderAdapterConfig) -> ProviderAdapter:
    return OpenAIAdapter(
        base_url=config.base_url,
        api_key=config.api_key,
        timeout_sec=config.timeout_sec,
        model=config.model,
        image_detail=config.image_detail,
    )


def _build_openrouter(config: ProviderAdapterConfig) -> ProviderAdapter:
    return OpenRouterAdapter(
        base_url=config.base_url,
        api_key=config.api_key,
        timeout_sec=config.timeout_sec,
        model=config.model,
        image_detail=config.image_detail,
    )


_ADAPTER_BUILDERS: dict[str, AdapterBuilder] = {
    "openai": _build_openai,
    "openrouter": _build_openrouter,
}
SUPPORTED_PROVIDERS = tuple(_ADAPTER_BUILDERS)


def build_provider_adapter(config: ProviderAdapterConfig) -> ProviderAdapter:
    provider = config.provider.strip().lower()
    builder = _ADAPTER_BUILDERS.get(provider)
    if builder is not None:
        return builder(config)
    raise ValueError(f"Unsupported provider: {config.provider}")
