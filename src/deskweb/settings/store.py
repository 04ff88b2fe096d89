"""Preferences store: the single source of truth for user settings."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from pathlib import Path
from typing import Any, Final

from deskweb.dispatch import Dispatcher
from deskweb.settings.user import UserSettings
from deskweb.system.polling import PollingWatcher

logger: Final = logging.getLogger(__name__)

ChangeCallback = Callable[[Any], None]


class PreferencesStore:
    """Holds the canonical ``UserSettings`` and announces changes.

    Observers subscribe per field and are called with the new value after
    the store has been updated. Changes made through ``update`` are written
    back to the config file when the store has one; changes made by other
    processes are picked up with ``reload``.
    """

    def __init__(self, settings: UserSettings, path: Path | None = None) -> None:
        """Initialize the store.

        Args:
            settings: Initial settings
            path: Config file backing the store (None keeps it in memory)
        """
        self._settings = settings
        self.path = path
        self._observers: dict[str, list[ChangeCallback]] = defaultdict(list)

    @classmethod
    def from_file(cls, path: Path | None = None) -> PreferencesStore:
        """Load a store from a config file (see ``UserSettings.load``)."""
        path = path or UserSettings.find_config()
        return cls(UserSettings.load(path), path)

    @property
    def settings(self) -> UserSettings:
        return self._settings

    def subscribe(self, field: str, callback: ChangeCallback) -> None:
        """Call ``callback(new_value)`` whenever ``field`` changes."""
        if field not in UserSettings.model_fields:
            raise KeyError(f"Unknown setting: {field}")
        self._observers[field].append(callback)

    def update(self, **changes: Any) -> set[str]:
        """Validate and apply changes, persist them and notify observers.

        Returns:
            Names of the fields whose value actually changed

        Raises:
            RuntimeError: If the resulting settings are invalid
        """
        data = self._settings.model_dump()
        data.update(changes)
        try:
            new_settings = UserSettings.model_validate(data)
        except ValueError as err:
            raise RuntimeError(f"Invalid setting change:\n{err}") from err

        changed = self._replace(new_settings)
        if changed and self.path is not None:
            new_settings.save(self.path)
        return changed

    def toggle(self, field: str) -> bool:
        """Flip a boolean setting.

        Returns:
            The new value
        """
        current = getattr(self._settings, field)
        if not isinstance(current, bool):
            raise TypeError(f"Setting {field} is not a boolean")
        self.update(**{field: not current})
        return not current

    def reload(self) -> set[str]:
        """Re-read the config file and notify observers of external edits.

        Invalid files are logged and ignored so a half-written edit does not
        take the running instance down.

        Returns:
            Names of the fields whose value changed
        """
        if self.path is None:
            return set()
        try:
            new_settings = UserSettings.load(self.path)
        except (RuntimeError, FileNotFoundError) as exc:
            logger.warning("Ignoring config reload: %s", exc)
            return set()
        return self._replace(new_settings)

    def _replace(self, new_settings: UserSettings) -> set[str]:
        old = self._settings
        changed = {
            name for name in UserSettings.model_fields if getattr(old, name) != getattr(new_settings, name)
        }
        self._settings = new_settings

        for name in sorted(changed):
            value = getattr(new_settings, name)
            logger.debug("Setting %s changed: %r → %r", name, getattr(old, name), value)
            for callback in list(self._observers.get(name, ())):
                callback(value)
        return changed


class ConfigFileWatcher(PollingWatcher[float]):
    """Reloads the store when its config file's modification time changes."""

    name = "config file"

    def __init__(self, dispatcher: Dispatcher, store: PreferencesStore, poll_interval: float = 2.0) -> None:
        if store.path is None:
            raise ValueError("Store has no backing config file")
        super().__init__(dispatcher, poll_interval)
        self.store = store
        self.path: Path = store.path
        self.subscribe(lambda _mtime: self.store.reload())

    def read(self) -> float:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return 0.0
