"""Settings management.

This package provides:
- UserSettings: User-configurable settings loaded from config.yaml
- PreferencesStore: Canonical settings with change notifications
- ApplicationSettings: Internal paths and fixed defaults
"""

from deskweb.settings.application import ApplicationSettings, AppPaths, LoadSettings
from deskweb.settings.store import ConfigFileWatcher, PreferencesStore
from deskweb.settings.user import UserSettings

__all__ = [
    "AppPaths",
    "ApplicationSettings",
    "ConfigFileWatcher",
    "LoadSettings",
    "PreferencesStore",
    "UserSettings",
]
