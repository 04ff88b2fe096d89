"""Target display lookup."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Final, Optional, Protocol, runtime_checkable

logger: Final = logging.getLogger(__name__)

_XRANDR_OUTPUT = re.compile(
    r"^(?P<name>\S+) connected (?P<primary>primary )?(?P<width>\d+)x(?P<height>\d+)\+\d+\+\d+"
)


@dataclass(frozen=True)
class ScreenInfo:
    """Pixel geometry of one display."""

    name: str
    width: float
    height: float
    primary: bool = False


@runtime_checkable
class DisplayProvider(Protocol):
    """Protocol for looking up the display the wallpaper lives on."""

    def target_screen(self, selector: Optional[str] = None) -> Optional[ScreenInfo]:
        """Return the selected display, the primary one, or None if there is none."""
        ...


def _pick(screens: list[ScreenInfo], selector: Optional[str]) -> Optional[ScreenInfo]:
    if not screens:
        return None
    if selector:
        for screen in screens:
            if screen.name == selector:
                return screen
        logger.warning("Display %r not found, falling back to primary", selector)
    for screen in screens:
        if screen.primary:
            return screen
    return screens[0]


class StaticDisplayProvider:
    """Provider returning a fixed size from configuration."""

    def __init__(self, width: float, height: float, name: str = "static") -> None:
        self.screen = ScreenInfo(name=name, width=width, height=height, primary=True)

    def target_screen(self, selector: Optional[str] = None) -> Optional[ScreenInfo]:
        return self.screen


class XrandrDisplayProvider:
    """X11 implementation parsing ``xrandr --query``."""

    def __init__(self, timeout: float = 3.0) -> None:
        self.timeout = timeout

    def list_screens(self) -> list[ScreenInfo]:
        try:
            result = subprocess.run(
                ["xrandr", "--query"], capture_output=True, text=True, check=True, timeout=self.timeout
            )
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError) as exc:
            logger.debug("xrandr unavailable: %s", exc)
            return []
        return self.parse(result.stdout)

    @staticmethod
    def parse(output: str) -> list[ScreenInfo]:
        screens: list[ScreenInfo] = []
        for line in output.splitlines():
            match = _XRANDR_OUTPUT.match(line)
            if match:
                screens.append(
                    ScreenInfo(
                        name=match["name"],
                        width=float(match["width"]),
                        height=float(match["height"]),
                        primary=match["primary"] is not None,
                    )
                )
        return screens

    def target_screen(self, selector: Optional[str] = None) -> Optional[ScreenInfo]:
        return _pick(self.list_screens(), selector)


class HyprctlDisplayProvider:
    """Hyprland implementation parsing ``hyprctl monitors -j``."""

    def __init__(self, timeout: float = 3.0) -> None:
        self.timeout = timeout

    def list_screens(self) -> list[ScreenInfo]:
        try:
            result = subprocess.run(
                ["hyprctl", "monitors", "-j"], capture_output=True, text=True, check=True, timeout=self.timeout
            )
            monitors = json.loads(result.stdout)
        except (
            subprocess.CalledProcessError,
            subprocess.TimeoutExpired,
            FileNotFoundError,
            json.JSONDecodeError,
        ) as exc:
            logger.debug("hyprctl unavailable: %s", exc)
            return []

        # Logical size: Hyprland reports physical pixels plus a scale factor
        return [
            ScreenInfo(
                name=m["name"],
                width=m["width"] / m.get("scale", 1.0),
                height=m["height"] / m.get("scale", 1.0),
                primary=bool(m.get("focused", False)),
            )
            for m in monitors
        ]

    def target_screen(self, selector: Optional[str] = None) -> Optional[ScreenInfo]:
        return _pick(self.list_screens(), selector)


class ChainedDisplayProvider:
    """Tries several providers in order until one finds a display."""

    def __init__(self, providers: Optional[list[DisplayProvider]] = None) -> None:
        self.providers = providers or [HyprctlDisplayProvider(), XrandrDisplayProvider()]

    def target_screen(self, selector: Optional[str] = None) -> Optional[ScreenInfo]:
        for provider in self.providers:
            screen = provider.target_screen(selector)
            if screen is not None:
                return screen
        return None
