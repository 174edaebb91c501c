from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from ..utils.log import StructuredLogEmitter
from .keys import API_KEY_SETTING_KEY, CONFIG_API_KEY_KEY, SETTINGS_KEY
from .schema import DEFAULT_SETTINGS, PluginSettings

structured_log = StructuredLogEmitter(logger=logging.getLogger(__name__))

# KV 访问函数签名（通过函数注入而非硬编码依赖）：
# - kv_get(key, default) -> 已存值或 default
# - kv_put(key, value) -> 持久化写入
KVGet = Callable[[str, object], Awaitable[object | None]]
KVPut = Callable[[str, object], Awaitable[None]]
SettingValueValidator = Callable[[str], str]


def _normalize_settings(raw_settings: object) -> PluginSettings:
    """将外部输入归一化为 `dict[str, str]`，丢弃非字符串项。"""
    if not isinstance(raw_settings, dict):
        return {}
    normalized: PluginSettings = {}
    for key, value in raw_settings.items():
        if isinstance(key, str) and isinstance(value, str):
            normalized[key] = value
    return normalized


def _validate_api_key(value: str) -> str:
    if any(char.isspace() for char in value):
        raise ValueError("API key must not contain whitespace.")
    return value


class SettingsStore:
    """插件设置：启动时加载（默认值兜底），每次修改立即全量写回 KV。"""

    def __init__(
        self,
        *,
        config: Mapping[str, Any],
        kv_get: KVGet,
        kv_put: KVPut,
    ) -> None:
        self._config = config
        self._kv_get = kv_get
        self._kv_put = kv_put
        self._settings: PluginSettings = dict(DEFAULT_SETTINGS)
        self._lock = asyncio.Lock()
        self._validators: dict[str, SettingValueValidator] = {
            API_KEY_SETTING_KEY: _validate_api_key,
        }

    async def initialize(self) -> PluginSettings:
        """默认值 <- KV 已存值；KV 中密钥为空时用插件配置里的初始密钥补全。"""
        async with self._lock:
            stored = _normalize_settings(await self._kv_get(SETTINGS_KEY, {}))
            self._settings = {**DEFAULT_SETTINGS, **stored}

            if not self._settings[API_KEY_SETTING_KEY]:
                seeded = str(self._config.get(CONFIG_API_KEY_KEY) or "").strip()
                if seeded:
                    self._settings[API_KEY_SETTING_KEY] = seeded
                    structured_log.info(
                        "storage.api_key_seeded_from_config",
                        {"api_key": seeded},
                    )

            await self._sync_to_kv_locked()
            return self._snapshot()

    def get_config_value(self, key: str, default: Any = None) -> Any:
        """读取插件配置（只读，由宿主维护）。"""
        return self._config.get(key, default)

    async def get_value(self, key: str, default: str = "") -> str:
        async with self._lock:
            value = self._settings.get(key, default)
            if isinstance(value, str):
                return value
            return default

    async def get_api_key(self) -> str:
        return await self.get_value(API_KEY_SETTING_KEY, "")

    async def set_value(self, key: str, value: str) -> PluginSettings:
        """写入设置并立即同步到 KV；值未变化时不写入。"""
        async with self._lock:
            normalized_value = value.strip()
            validator = self._validators.get(key)
            if validator is not None:
                normalized_value = validator(normalized_value)

            if self._settings.get(key) == normalized_value:
                return self._snapshot()

            self._settings[key] = normalized_value
            await self._sync_to_kv_locked()
            structured_log.info(
                "storage.setting_updated",
                {"key": key, key: normalized_value},
            )
            return self._snapshot()

    async def sync_to_kv(self) -> None:
        async with self._lock:
            await self._sync_to_kv_locked()

    async def _sync_to_kv_locked(self) -> None:
        await self._kv_put(SETTINGS_KEY, self._snapshot())

    def _snapshot(self) -> PluginSettings:
        return dict(self._settings)
