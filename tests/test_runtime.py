"""Tests for the process runtime and action delivery."""

from __future__ import annotations

import asyncio
import os
import signal
from pathlib import Path
from unittest.mock import Mock

import pytest

from deskweb.power import MockPowerSource
from deskweb.remote import MockReachabilityChecker
from deskweb.runtime import SIGNAL_ACTIONS, Runtime, read_pid_file, send_action, write_pid_file
from deskweb.settings.application import AppPaths
from deskweb.settings.store import PreferencesStore
from deskweb.settings.user import UserSettings
from deskweb.surface.error_ui import MockErrorPresenter
from deskweb.surface.protocols import MockDesktopWindow, MockWebSurface
from deskweb.system.display import StaticDisplayProvider

WALLPAPER = "file:///tmp/wallpaper.html"


@pytest.fixture
def paths(tmp_path: Path) -> AppPaths:
    return AppPaths(state_dir=tmp_path / "state")


@pytest.fixture
def runtime(paths: AppPaths) -> Runtime:
    store = PreferencesStore(UserSettings(url=WALLPAPER, reload_interval_seconds=60))
    runtime = Runtime(
        store,
        loop=asyncio.new_event_loop(),
        paths=paths,
        surface=MockWebSurface(),
        window=MockDesktopWindow(),
        reachability=MockReachabilityChecker(),
        display_provider=StaticDisplayProvider(1920, 1080),
        presenter=MockErrorPresenter(),
    )
    runtime.controller.power_watcher.providers = [MockPowerSource(False)]
    runtime.lock_watcher.providers = []
    return runtime


# ── pid file & actions ───────────────────────────────────────────────────────
def test_pid_file_round_trip(tmp_path: Path) -> None:
    pid_file = tmp_path / "run" / "deskweb.pid"

    write_pid_file(pid_file)

    assert read_pid_file(pid_file) == os.getpid()


def test_stale_pid_file_is_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    pid_file = tmp_path / "deskweb.pid"
    pid_file.write_text("999999\n")
    monkeypatch.setattr("deskweb.runtime.os.kill", Mock(side_effect=ProcessLookupError))

    assert read_pid_file(pid_file) is None


def test_garbage_pid_file_is_ignored(tmp_path: Path) -> None:
    pid_file = tmp_path / "deskweb.pid"
    pid_file.write_text("not a pid")

    assert read_pid_file(pid_file) is None
    assert read_pid_file(tmp_path / "missing.pid") is None


def test_send_action_signals_running_instance(paths: AppPaths, monkeypatch: pytest.MonkeyPatch) -> None:
    paths.state_dir.mkdir(parents=True)
    paths.pid_file.write_text("4242\n")
    kill = Mock()
    monkeypatch.setattr("deskweb.runtime.os.kill", kill)

    assert send_action("reload", paths) == 4242

    kill.assert_called_with(4242, SIGNAL_ACTIONS["reload"])


def test_send_action_without_instance(paths: AppPaths) -> None:
    with pytest.raises(ProcessLookupError):
        send_action("toggle", paths)


def test_send_unknown_action(paths: AppPaths) -> None:
    with pytest.raises(KeyError):
        send_action("explode", paths)


# ── runtime ──────────────────────────────────────────────────────────────────
def test_runtime_launches_controller_and_cleans_up(runtime: Runtime, paths: AppPaths) -> None:
    pid_seen: list[bool] = []
    runtime.start()
    runtime.loop.call_later(0.05, lambda: pid_seen.append(paths.pid_file.exists()))
    runtime.loop.call_later(0.1, runtime.stop)

    runtime.loop.run_forever()
    runtime.shutdown()

    surface = runtime.controller.surface
    window = runtime.controller.window
    assert isinstance(surface, MockWebSurface)
    assert isinstance(window, MockDesktopWindow)
    assert surface.loaded_urls == [WALLPAPER]
    assert pid_seen == [True]
    assert not paths.pid_file.exists()
    assert window.visible is False
    assert runtime.controller.has_reload_timer is False
    assert runtime.loop.is_closed()


def test_signal_delivers_user_action(runtime: Runtime) -> None:
    runtime.install_signal_handlers()
    runtime.start()
    runtime.loop.call_later(0.05, os.kill, os.getpid(), signal.SIGUSR1)
    runtime.loop.call_later(0.2, runtime.stop)

    runtime.loop.run_forever()

    assert runtime.controller.is_manually_disabled is True
    assert runtime.controller.is_enabled is False
    runtime.shutdown()


def test_runtime_starts_disabled_when_screen_is_locked(runtime: Runtime) -> None:
    runtime.lock_watcher.providers = [Mock(is_locked=Mock(return_value=True))]
    runtime.start()
    runtime.loop.call_later(0.05, runtime.stop)

    runtime.loop.run_forever()

    assert runtime.controller.is_screen_locked is True
    assert runtime.controller.is_enabled is False
    surface = runtime.controller.surface
    assert isinstance(surface, MockWebSurface)
    assert surface.loaded_urls == ["about:blank"]
    runtime.shutdown()
