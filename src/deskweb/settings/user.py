"""User-configurable settings loaded from config.yaml."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import ClassVar, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

# Load environment variables from .env file(s)
load_dotenv()


def _interpolate_env(content: str) -> str:
    return re.sub(r"\$\{(\w+)\}", lambda m: os.getenv(m.group(1), ""), content)


DEFAULT_KIOSK_FLAGS: list[str] = [
    "--kiosk",
    "--noerrdialogs",
    "--disable-infobars",
    "--disable-session-crashed-bubble",
    "--disable-restore-session-state",
    "--disable-sync",
]


class UserSettings(BaseModel):
    """Preferences for the wallpaper. This is the canonical store for every
    value the controller mirrors (browsing mode included); the CLI edits it
    and the running instance reacts to the change.
    """

    # Default search paths for configuration
    DEFAULT_CONFIG_PATHS: ClassVar[list[Path]] = [
        Path("config.yaml"),
        Path("~/.config/deskweb/config.yaml").expanduser(),
        Path("/etc/deskweb/config.yaml"),
    ]

    # Website
    url: str | None = Field(
        None,
        description="Page to show; may contain [[screenWidth]] and [[screenHeight]]",
    )
    reload_interval_seconds: float | None = Field(
        None, gt=0, description="Reload the page this often; null never reloads"
    )

    # Behaviour
    deactivate_on_battery: bool = Field(False, description="Disable while running on battery")
    browsing_mode: bool = Field(False, description="Make the wallpaper interactive")
    opacity: float = Field(1.0, ge=0.0, le=1.0, description="Wallpaper opacity outside browsing mode")

    # Display
    display: str | None = Field(None, description="Name of the target display (default: primary)")
    screen_width: int | None = Field(None, gt=0, description="Fixed screen width, skips detection")
    screen_height: int | None = Field(None, gt=0, description="Fixed screen height, skips detection")

    # Browser
    browser: str = Field("chromium", description="Browser executable used for the wallpaper")
    kiosk_flags: list[str] = Field(default_factory=lambda: list(DEFAULT_KIOSK_FLAGS))
    startup_grace_seconds: float = Field(
        3.0, ge=0, description="Seconds a browser must survive before a load counts as done"
    )

    # Connectivity & polling
    reachability_urls: list[str] | None = Field(
        None, description="Probe URLs for the connectivity check; [] disables it"
    )
    reachability_timeout_seconds: float = Field(2.0, gt=0)
    poll_interval_seconds: float = Field(
        5.0, gt=0, description="How often power and lock state are sampled"
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ---- validators ----
    @field_validator("url")
    @classmethod
    def strip_url(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @model_validator(mode="after")
    def check_screen_size_pair(self) -> UserSettings:
        if (self.screen_width is None) != (self.screen_height is None):
            raise ValueError("screen_width and screen_height must be set together")
        return self

    # ---- convenience methods ----
    @property
    def has_fixed_screen_size(self) -> bool:
        """Whether detection is replaced by a configured screen size."""
        return self.screen_width is not None and self.screen_height is not None

    @classmethod
    def find_config(cls) -> Path:
        """Locate the config file.

        Returns:
            Path from $DESKWEB_CONFIG or the first existing default path

        Raises:
            FileNotFoundError: If no config file is found
        """
        env_path = os.environ.get("DESKWEB_CONFIG")
        if env_path:
            path = Path(env_path)
            if not path.exists():
                raise FileNotFoundError(f"Config file from DESKWEB_CONFIG not found: {path}")
            return path

        for default_path in cls.DEFAULT_CONFIG_PATHS:
            if default_path.exists():
                return default_path
        raise FileNotFoundError("No configuration file found. Create config.yaml or set DESKWEB_CONFIG.")

    @classmethod
    def load(cls, path: Path | None = None) -> UserSettings:
        """Load configuration from a YAML file.

        Args:
            path: Path to config file (optional, searches default locations if None)

        Returns:
            Validated UserSettings object

        Raises:
            FileNotFoundError: If no config file is found
            RuntimeError: If the config file cannot be parsed or is invalid
        """
        if path is None:
            path = cls.find_config()

        try:
            raw = _interpolate_env(path.read_text())
            data = yaml.safe_load(raw) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise RuntimeError(f"Unable to read config YAML: {exc}") from exc

        try:
            return cls.model_validate(data)
        except ValidationError as err:
            raise RuntimeError(f"Invalid configuration:\n{err}") from err

    def save(self, path: Path) -> None:
        """Write the settings to ``path`` as YAML."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            yaml.safe_dump(self.model_dump(exclude_defaults=True), sort_keys=False),
            encoding="utf-8",
        )
