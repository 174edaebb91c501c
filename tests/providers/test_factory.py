from __future__ import annotations

import pytest
from src.providers.factory import SUPPORTED_PROVIDERS, build_provider_adapter
from src.providers.openai_responses import OpenAIAdapter
from src.providers.openrouter import OpenRouterAdapter
from src.providers.schema import ProviderAdapterConfig


def _make_config(provider: str = "openai") -> ProviderAdapterConfig:
    return ProviderAdapterConfig(
        provider=provider,
        base_url="",
        api_key="test-key",
        timeout_sec=45,
        model="test-model",
        image_detail="low",
    )


@pytest.mark.parametrize(
    ("provider", "adapter_type"),
    [
        ("openai", OpenAIAdapter),
        (" OpenRouter ", OpenRouterAdapter),
    ],
)
def test_build_provider_adapter_success(provider: str, adapter_type: type) -> None:
    """验证：已注册的 provider 可以成功创建适配器并正确映射字段。"""
    config = _make_config(provider)

    adapter = build_provider_adapter(config)

    assert isinstance(adapter, adapter_type)
    assert adapter.api_key == config.api_key
    assert adapter.timeout_sec == config.timeout_sec
    assert adapter.model == config.model
    assert adapter.image_detail == config.image_detail
    assert adapter.base_url.startswith("https://")


def test_build_provider_adapter_unsupported_provider() -> None:
    """验证：未注册的 provider 会抛出 ValueError。"""
    with pytest.raises(ValueError, match="Unsupported provider"):
        build_provider_adapter(_make_config(provider="unknown-provider"))


def test_supported_providers() -> None:
    assert SUPPORTED_PROVIDERS == ("openai", "openrouter")
