from __future__ import annotations

from collections.abc import Mapping
from dataclasses import MISSING, fields
from typing import Any

from .schema import ProviderAdapterConfig


def _require_mapping(raw_config: Any) -> Mapping[str, Any]:
    """确保原始配置是键值映射。"""
    if not isinstance(raw_config, Mapping):
        raise TypeError("Provider adapter config must be a mapping object.")
    return raw_config


def _require_keys(cfg: Mapping[str, Any], required: tuple[str, ...]) -> None:
    """仅校验必填字段是否存在。"""
    missing = [key for key in required if key not in cfg]
    if missing:
        raise KeyError(f"Missing required provider config keys: {', '.join(missing)}")


def read_provider_adapter_config(raw_config: Any) -> ProviderAdapterConfig:
    """读取适配器配置：无默认值的字段必填，有默认值的字段缺省时沿用默认值。"""
    cfg = _require_mapping(raw_config)
    config_fields = fields(ProviderAdapterConfig)
    required = tuple(f.name for f in config_fields if f.default is MISSING)
    _require_keys(cfg, required)

    payload = {f.name: cfg[f.name] for f in config_fields if f.name in cfg}
    payload["api_key"] = str(payload["api_key"] or "").strip()
    payload["timeout_sec"] = int(payload["timeout_sec"])
    return ProviderAdapterConfig(**payload)
