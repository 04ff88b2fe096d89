"""System module for OS state: displays, screen lock, polling."""

from deskweb.system.display import DisplayProvider, ScreenInfo
from deskweb.system.lock import ScreenLockWatcher
from deskweb.system.polling import PollingWatcher

__all__ = [
    "DisplayProvider",
    "PollingWatcher",
    "ScreenInfo",
    "ScreenLockWatcher",
]
