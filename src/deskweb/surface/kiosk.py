"""Web surface backed by a kiosk-mode browser process."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from collections.abc import Callable, Sequence
from typing import Any, Final, Optional

from deskweb.settings.application import BLANK_URL
from deskweb.surface.protocols import LoadCallback, WebSurface

logger: Final = logging.getLogger(__name__)


class KioskBrowserSurface:
    """Shows the wallpaper in a full-screen browser launched per page.

    Implements both ``WebSurface`` and ``DesktopWindow``. Each load
    replaces the running browser; the load counts as complete when the new
    process is still alive after ``startup_grace`` seconds. Loading the
    blank page simply stops the browser.

    While the window is hidden no browser runs: loads only record the URL,
    and ``bring_to_front`` launches the last one recorded, reporting to the
    callback of that load.
    """

    def __init__(
        self,
        browser: str = "chromium",
        kiosk_flags: Sequence[str] = ("--kiosk",),
        startup_grace: float = 3.0,
        popen: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        """Initialize the surface.

        Args:
            browser: Browser executable
            kiosk_flags: Flags placed before the URL
            startup_grace: Seconds the browser must survive for a load to succeed
            popen: Process factory (``subprocess.Popen`` signature)
        """
        self.browser = browser
        self.kiosk_flags = list(kiosk_flags)
        self.startup_grace = startup_grace
        self.popen = popen
        self.process: Optional[Any] = None
        self.current_url: Optional[str] = None
        self.hidden = False
        self.interactive = False
        self.opacity = 1.0
        self._deferred_complete: LoadCallback | None = None
        self._watcher: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    # ── WebSurface ────────────────────────────────────────────────────────────
    def load_url(self, url: str, on_complete: LoadCallback | None = None) -> None:
        with self._lock:
            self._terminate()
            self.current_url = url
            self._deferred_complete = None

            if url == BLANK_URL:
                if on_complete is not None:
                    on_complete(None)
                return

            if self.hidden:
                logger.debug("Window hidden, deferring launch of %s", url)
                self._deferred_complete = on_complete
                return

            self._start(url, on_complete)

    def recreate(self) -> None:
        with self._lock:
            self._terminate()
        logger.info("Browser surface recreated")

    # ── DesktopWindow ─────────────────────────────────────────────────────────
    def attach(self, surface: WebSurface) -> None:
        if surface is not self:
            raise ValueError("A kiosk browser can only host itself")

    def bring_to_front(self) -> None:
        with self._lock:
            self.hidden = False
            url = self.current_url
            if self.process is not None or url is None or url == BLANK_URL:
                return

            on_complete, self._deferred_complete = self._deferred_complete, None
            self._start(url, on_complete)

    def hide(self) -> None:
        with self._lock:
            self.hidden = True
            self._terminate()

    def reveal_content(self) -> None:
        logger.debug("Browser content visible: %s", self.current_url)

    def set_interactive(self, interactive: bool) -> None:
        # Kiosk windows always take input; recorded for status reporting only
        self.interactive = interactive
        logger.debug("Interactive mode %s", "on" if interactive else "off")

    def set_opacity(self, opacity: float) -> None:
        self.opacity = opacity
        logger.debug("Opacity %.2f requested (not supported by kiosk browsers)", opacity)

    # ── internals ─────────────────────────────────────────────────────────────
    def _start(self, url: str, on_complete: LoadCallback | None) -> None:
        """Launch the browser and watch its startup. Caller holds the lock."""
        try:
            process = self._launch(url)
        except OSError as exc:
            logger.error("Could not launch %s: %s", self.browser, exc)
            if on_complete is not None:
                on_complete(exc)
            return

        self._watcher = threading.Thread(
            target=self._watch_startup,
            args=(process, url, on_complete),
            name="kiosk-startup",
            daemon=True,
        )
        self._watcher.start()

    def _launch(self, url: str) -> Any:
        cmd = [self.browser, *self.kiosk_flags, url]
        env = os.environ.copy()
        env.setdefault("DISPLAY", ":0")
        logger.info("Launching browser: %s", " ".join(cmd))
        self.process = self.popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE, env=env)
        return self.process

    def _terminate(self) -> None:
        process, self.process = self.process, None
        if process is None or process.poll() is not None:
            return
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            logger.warning("Browser did not exit, killing it")
            process.kill()

    def _watch_startup(self, process: Any, url: str, on_complete: LoadCallback | None) -> None:
        time.sleep(self.startup_grace)
        code = process.poll()
        if on_complete is None:
            return
        if code is None:
            on_complete(None)
            return
        on_complete(RuntimeError(f"Browser exited with code {code} while loading {url}"))
