from __future__ import annotations

import pytest
from src.storage import DEFAULT_SETTINGS, SettingsStore
from src.storage.keys import API_KEY_SETTING_KEY, LEGACY_SETTING_KEY, SETTINGS_KEY


class _FakeKV:
    def __init__(self, initial: dict[str, object] | None = None) -> None:
        self.store = initial or {}
        self.put_calls: list[tuple[str, object]] = []

    async def get(self, key: str, default: object) -> object | None:
        value = self.store.get(key, default)
        return value

    async def put(self, key: str, value: object) -> None:
        self.store[key] = value
        self.put_calls.append((key, value))


@pytest.mark.asyncio
async def test_initialize_uses_defaults_when_kv_empty() -> None:
    """验证：首次加载使用默认值，并立即全量写回 KV。"""
    kv = _FakeKV()
    store = SettingsStore(config={}, kv_get=kv.get, kv_put=kv.put)

    settings = await store.initialize()

    assert settings == DEFAULT_SETTINGS
    assert kv.put_calls == [(SETTINGS_KEY, DEFAULT_SETTINGS)]


@pytest.mark.asyncio
async def test_initialize_merges_stored_values_over_defaults() -> None:
    """验证：KV 已存值覆盖默认值，非字符串项被丢弃。"""
    kv = _FakeKV(
        {
            SETTINGS_KEY: {
                API_KEY_SETTING_KEY: "sk-stored",
                LEGACY_SETTING_KEY: 42,
            }
        }
    )
    store = SettingsStore(
        config={"api_key": "sk-from-config"},
        kv_get=kv.get,
        kv_put=kv.put,
    )

    settings = await store.initialize()

    assert settings[API_KEY_SETTING_KEY] == "sk-stored"
    assert settings[LEGACY_SETTING_KEY] == "default"


@pytest.mark.asyncio
async def test_initialize_seeds_api_key_from_config() -> None:
    kv = _FakeKV({SETTINGS_KEY: {API_KEY_SETTING_KEY: ""}})
    store = SettingsStore(
        config={"api_key": "  sk-from-config  "},
        kv_get=kv.get,
        kv_put=kv.put,
    )

    await store.initialize()

    assert await store.get_api_key() == "sk-from-config"
    assert kv.store[SETTINGS_KEY][API_KEY_SETTING_KEY] == "sk-from-config"


@pytest.mark.asyncio
async def test_set_value_persists_immediately() -> None:
    """验证：修改密钥后立即写入 KV，值未变化时不重复写入。"""
    kv = _FakeKV()
    store = SettingsStore(config={}, kv_get=kv.get, kv_put=kv.put)
    await store.initialize()
    kv.put_calls.clear()

    await store.set_value(API_KEY_SETTING_KEY, "  sk-new-key ")
    await store.set_value(API_KEY_SETTING_KEY, "sk-new-key")

    assert await store.get_api_key() == "sk-new-key"
    assert kv.put_calls == [
        (SETTINGS_KEY, {LEGACY_SETTING_KEY: "default", API_KEY_SETTING_KEY: "sk-new-key"})
    ]


@pytest.mark.asyncio
async def test_set_value_rejects_api_key_with_whitespace() -> None:
    kv = _FakeKV()
    store = SettingsStore(config={}, kv_get=kv.get, kv_put=kv.put)
    await store.initialize()
    kv.put_calls.clear()

    with pytest.raises(ValueError, match="whitespace"):
        await store.set_value(API_KEY_SETTING_KEY, "sk-a sk-b")

    assert kv.put_calls == []
    assert await store.get_api_key() == ""


@pytest.mark.asyncio
async def test_get_config_value_reads_plugin_config() -> None:
    kv = _FakeKV()
    store = SettingsStore(
        config={"vault_path": "/notes"},
        kv_get=kv.get,
        kv_put=kv.put,
    )

    assert store.get_config_value("vault_path") == "/notes"
    assert store.get_config_value("output_folder", "") == ""
