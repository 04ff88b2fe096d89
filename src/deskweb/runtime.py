"""Process runtime: event loop, watchers, POSIX signal actions and pid file."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from pathlib import Path
from typing import Any, Final

from deskweb.controller import AppController
from deskweb.dispatch import AsyncioDispatcher
from deskweb.settings.application import AppPaths
from deskweb.settings.store import ConfigFileWatcher, PreferencesStore
from deskweb.system.lock import ScreenLockWatcher

logger: Final = logging.getLogger(__name__)

# CLI action name → signal delivered to the running instance
SIGNAL_ACTIONS: Final[dict[str, signal.Signals]] = {
    "toggle": signal.SIGUSR1,
    "reload": signal.SIGUSR2,
    "recreate": signal.SIGHUP,
}


def write_pid_file(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{os.getpid()}\n", encoding="utf-8")


def read_pid_file(path: Path) -> int | None:
    """Return the pid of a running instance, or None if there is none."""
    try:
        pid = int(path.read_text().strip())
    except (OSError, ValueError):
        return None

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        logger.debug("Stale pid file %s (pid %d)", path, pid)
        return None
    except PermissionError:
        pass
    return pid


def send_action(action: str, paths: AppPaths | None = None) -> int:
    """Deliver a user action to the running instance.

    Args:
        action: One of ``SIGNAL_ACTIONS``
        paths: Application paths (for the pid file)

    Returns:
        The pid the action was sent to

    Raises:
        KeyError: Unknown action
        ProcessLookupError: No running instance
    """
    sig = SIGNAL_ACTIONS[action]
    paths = paths or AppPaths.default()
    pid = read_pid_file(paths.pid_file)
    if pid is None:
        raise ProcessLookupError(f"No running instance found (pid file: {paths.pid_file})")
    os.kill(pid, sig)
    logger.debug("Sent %s to %d", sig.name, pid)
    return pid


class Runtime:
    """Runs an AppController on an asyncio event loop.

    Every event source is attached to the same loop: the controller's own
    timer and power watcher, the screen-lock watcher, the config-file
    watcher and POSIX signals carrying user actions.
    """

    def __init__(
        self,
        store: PreferencesStore,
        debug: bool = False,
        loop: asyncio.AbstractEventLoop | None = None,
        paths: AppPaths | None = None,
        **controller_options: Any,
    ) -> None:
        """Initialize the runtime.

        Args:
            store: Preferences store backed by the config file
            debug: Enable debug logging
            loop: Event loop (a new one if None)
            paths: Application paths
            **controller_options: Collaborators passed on to AppController
        """
        logging.basicConfig(
            level=logging.DEBUG if debug else getattr(logging, store.settings.log_level),
            format="%(asctime)s [%(levelname)s] %(message)s",
        )

        self.store = store
        self.loop = loop or asyncio.new_event_loop()
        self.dispatcher = AsyncioDispatcher(self.loop)
        self.paths = paths or AppPaths.default()

        self.controller = AppController(store, self.dispatcher, **controller_options)
        self.lock_watcher = ScreenLockWatcher(self.dispatcher, poll_interval=store.settings.poll_interval_seconds)
        self.config_watcher = ConfigFileWatcher(self.dispatcher, store) if store.path is not None else None

    def install_signal_handlers(self) -> None:
        actions = {
            "toggle": self.controller.toggle_manual_disable,
            "reload": self.controller.reload_website,
            "recreate": self.controller.recreate_surface_and_reload,
        }
        for name, sig in SIGNAL_ACTIONS.items():
            self.loop.add_signal_handler(sig, actions[name])
        for sig in (signal.SIGTERM, signal.SIGINT):
            self.loop.add_signal_handler(sig, self.stop)

    def start(self) -> None:
        """Attach event sources and queue the controller's launch."""
        write_pid_file(self.paths.pid_file)

        self.lock_watcher.connect(self.controller.screen_locked, self.controller.screen_unlocked)
        self.lock_watcher.start()
        self.controller.is_screen_locked = bool(self.lock_watcher.value)
        if self.config_watcher is not None:
            self.config_watcher.start()

        self.dispatcher.call_soon(self.controller.did_launch)
        logger.info("deskweb started (pid %d)", os.getpid())

    def run(self) -> None:
        """Run until stopped by SIGINT/SIGTERM."""
        self.install_signal_handlers()
        self.start()
        try:
            self.loop.run_forever()
        finally:
            self.shutdown()

    def stop(self) -> None:
        self.loop.stop()

    def shutdown(self) -> None:
        """Stop watchers and the timer, hide the wallpaper, remove the pid file."""
        self.lock_watcher.stop()
        self.controller.power_watcher.stop()
        if self.config_watcher is not None:
            self.config_watcher.stop()
        self.controller.scheduler.cancel()
        self.controller.window.hide()

        try:
            self.paths.pid_file.unlink()
        except FileNotFoundError:
            pass

        self.loop.close()
        logger.info("deskweb stopped")
