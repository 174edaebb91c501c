from .schema import DEFAULT_SETTINGS, PluginSettings
from .state_store import SettingsStore

__all__ = [
    "DEFAULT_SETTINGS",
    "PluginSettings",
    "SettingsStore",
]
