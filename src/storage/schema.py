from __future__ import annotations

from .keys import API_KEY_SETTING_KEY, LEGACY_SETTING_KEY

PluginSettings = dict[str, str]

# 首次加载时的默认值；my_setting 为历史遗留字段，保留但不使用。
DEFAULT_SETTINGS: PluginSettings = {
    LEGACY_SETTING_KEY: "default",
    API_KEY_SETTING_KEY: "",
}
