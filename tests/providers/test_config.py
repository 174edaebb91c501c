from __future__ import annotations

import pytest
from src.providers.config import read_provider_adapter_config
from src.providers.schema import ProviderAdapterConfig


def _valid_raw_config() -> dict[str, object]:
    return {
        "provider": "openai",
        "base_url": "https://api.openai.com/v1",
        "api_key": " test-key ",
        "timeout_sec": "45",
        "model": "gpt-5",
        "image_detail": "high",
    }


def test_read_provider_adapter_config_success() -> None:
    """验证：合法映射可以成功构造 ProviderAdapterConfig，并规范化密钥与超时。"""
    config = read_provider_adapter_config(_valid_raw_config())

    assert isinstance(config, ProviderAdapterConfig)
    assert config.provider == "openai"
    assert config.base_url == "https://api.openai.com/v1"
    assert config.api_key == "test-key"
    assert config.timeout_sec == 45
    assert config.model == "gpt-5"
    assert config.image_detail == "high"


def test_read_provider_adapter_config_optional_field_defaults() -> None:
    """验证：有默认值的字段缺省时沿用默认值，额外字段被忽略。"""
    raw_config = _valid_raw_config()
    raw_config.pop("image_detail")
    raw_config["extra"] = "ignored"

    config = read_provider_adapter_config(raw_config)

    assert config.image_detail == "auto"
    assert not hasattr(config, "extra")


def test_read_provider_adapter_config_empty_api_key_is_allowed() -> None:
    """验证：密钥为空时仍可构造配置，由转换阶段报告配置错误。"""
    raw_config = _valid_raw_config()
    raw_config["api_key"] = None

    config = read_provider_adapter_config(raw_config)

    assert config.api_key == ""


@pytest.mark.parametrize("missing_key", ["provider", "api_key", "model"])
def test_read_provider_adapter_config_missing_required_key(missing_key: str) -> None:
    """验证：缺少任一必填字段时抛出 KeyError。"""
    raw_config = _valid_raw_config()
    raw_config.pop(missing_key)

    with pytest.raises(KeyError, match="Missing required provider config keys"):
        read_provider_adapter_config(raw_config)


def test_read_provider_adapter_config_requires_mapping() -> None:
    with pytest.raises(TypeError, match="must be a mapping"):
        read_provider_adapter_config(["openai"])
