"""Tests for target display lookup."""

from __future__ import annotations

import json
import subprocess
from unittest.mock import Mock

import pytest

from deskweb.system.display import (
    ChainedDisplayProvider,
    HyprctlDisplayProvider,
    ScreenInfo,
    StaticDisplayProvider,
    XrandrDisplayProvider,
)

XRANDR_OUTPUT = """\
Screen 0: minimum 320 x 200, current 4480 x 1440, maximum 16384 x 16384
eDP-1 connected 1920x1080+2560+0 (normal left inverted right x axis y axis) 309mm x 174mm
   1920x1080     60.01*+
HDMI-1 connected primary 2560x1440+0+0 (normal left inverted right x axis y axis) 597mm x 336mm
   2560x1440     59.95*+
DP-1 disconnected (normal left inverted right x axis y axis)
"""

HYPRCTL_MONITORS = [
    {"name": "eDP-1", "width": 2880, "height": 1800, "scale": 2.0, "focused": False},
    {"name": "DP-2", "width": 3840, "height": 2160, "scale": 1.5, "focused": True},
]


def _completed(stdout: str) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess([], 0, stdout=stdout, stderr="")


class FakeProvider:
    def __init__(self, screen: ScreenInfo | None) -> None:
        self.screen = screen
        self.selectors: list[str | None] = []

    def target_screen(self, selector: str | None = None) -> ScreenInfo | None:
        self.selectors.append(selector)
        return self.screen


def test_xrandr_parse_skips_disconnected_outputs() -> None:
    screens = XrandrDisplayProvider.parse(XRANDR_OUTPUT)

    assert screens == [
        ScreenInfo("eDP-1", 1920, 1080, primary=False),
        ScreenInfo("HDMI-1", 2560, 1440, primary=True),
    ]


@pytest.mark.parametrize("selector, expected", [(None, "HDMI-1"), ("eDP-1", "eDP-1"), ("DP-9", "HDMI-1")])
def test_xrandr_selects_named_or_primary(
    monkeypatch: pytest.MonkeyPatch, selector: str | None, expected: str
) -> None:
    monkeypatch.setattr("deskweb.system.display.subprocess.run", Mock(return_value=_completed(XRANDR_OUTPUT)))

    screen = XrandrDisplayProvider().target_screen(selector)

    assert screen is not None
    assert screen.name == expected


def test_hyprctl_reports_logical_size(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "deskweb.system.display.subprocess.run", Mock(return_value=_completed(json.dumps(HYPRCTL_MONITORS)))
    )

    screen = HyprctlDisplayProvider().target_screen()

    assert screen == ScreenInfo("DP-2", 2560, 1440, primary=True)


def test_missing_tools_mean_no_screen(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("deskweb.system.display.subprocess.run", Mock(side_effect=FileNotFoundError("xrandr")))

    assert XrandrDisplayProvider().target_screen() is None
    assert HyprctlDisplayProvider().target_screen() is None


def test_static_provider_ignores_selector() -> None:
    provider = StaticDisplayProvider(1280, 800)

    assert provider.target_screen("HDMI-1") == ScreenInfo("static", 1280, 800, primary=True)


def test_chain_returns_first_screen_found() -> None:
    empty = FakeProvider(None)
    found = FakeProvider(ScreenInfo("HDMI-1", 1920, 1080))
    never = FakeProvider(ScreenInfo("other", 1, 1))

    screen = ChainedDisplayProvider([empty, found, never]).target_screen("HDMI-1")

    assert screen is not None and screen.name == "HDMI-1"
    assert empty.selectors == ["HDMI-1"]
    assert never.selectors == []


def test_chain_without_screens_returns_none() -> None:
    assert ChainedDisplayProvider([FakeProvider(None)]).target_screen() is None
