"""Internal application settings derived from user settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from deskweb.settings.user import UserSettings

BLANK_URL = "about:blank"


@dataclass
class AppPaths:
    """Application file and directory paths.

    Runtime state lives under ``$XDG_STATE_HOME/deskweb``: the pid file the
    CLI uses to reach a running instance and the rendered error page.
    """

    state_dir: Path
    pid_file_name: str = "deskweb.pid"
    error_page_name: str = "error.html"

    @property
    def pid_file(self) -> Path:
        return self.state_dir / self.pid_file_name

    @property
    def error_page(self) -> Path:
        return self.state_dir / self.error_page_name

    @classmethod
    def default(cls) -> AppPaths:
        """Create paths under the XDG state directory."""
        base = os.environ.get("XDG_STATE_HOME") or Path("~/.local/state").expanduser()
        return cls(state_dir=Path(base) / "deskweb")


@dataclass
class LoadSettings:
    """Fixed rules of the URL load pipeline."""

    allowed_schemes: tuple[str, ...] = ("http", "https", "file")
    blank_url: str = BLANK_URL


class ApplicationSettings:
    """Application settings container.

    Combines the user's configuration with internal paths and fixed
    pipeline rules.

    Examples:
        user_settings = UserSettings.load()
        app_settings = ApplicationSettings(user_settings)
        pid_file = app_settings.paths.pid_file
    """

    def __init__(
        self,
        user_settings: UserSettings,
        paths: AppPaths | None = None,
        load: LoadSettings | None = None,
    ):
        self.user = user_settings
        self.paths = paths or AppPaths.default()
        self.load = load or LoadSettings()
