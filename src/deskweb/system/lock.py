"""Screen lock detection."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Callable
from typing import Final, Optional, Protocol, runtime_checkable

from deskweb.dispatch import Dispatcher
from deskweb.system.polling import PollingWatcher

logger: Final = logging.getLogger(__name__)


@runtime_checkable
class LockStateProvider(Protocol):
    """Protocol for screen-lock readers."""

    def is_locked(self) -> Optional[bool]:
        """Return the lock state, or None if this provider cannot tell."""
        ...


def _run(cmd: list[str], timeout: float) -> Optional[str]:
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (subprocess.TimeoutExpired, FileNotFoundError) as exc:
        logger.debug("%s unavailable: %s", cmd[0], exc)
        return None

    if result.returncode != 0:
        logger.debug("%s exited with %d: %s", cmd[0], result.returncode, result.stderr.strip())
        return None
    return result.stdout.strip()


class LoginctlLockState:
    """systemd-logind implementation reading the session's ``LockedHint``."""

    def __init__(self, session_id: Optional[str] = None, timeout: float = 3.0) -> None:
        """Initialize with the logind session to inspect.

        Args:
            session_id: Session id (defaults to $XDG_SESSION_ID, then "auto")
            timeout: Command timeout in seconds
        """
        self.session_id = session_id or os.environ.get("XDG_SESSION_ID") or "auto"
        self.timeout = timeout

    def is_locked(self) -> Optional[bool]:
        output = _run(
            ["loginctl", "show-session", self.session_id, "-p", "LockedHint", "--value"],
            self.timeout,
        )
        if output in ("yes", "no"):
            return output == "yes"
        return None


class ScreenSaverLockState:
    """freedesktop ScreenSaver implementation using ``qdbus``."""

    def __init__(self, timeout: float = 3.0) -> None:
        self.timeout = timeout

    def is_locked(self) -> Optional[bool]:
        output = _run(
            ["qdbus", "org.freedesktop.ScreenSaver", "/ScreenSaver", "GetActive"],
            self.timeout,
        )
        if output in ("true", "false"):
            return output == "true"
        return None


class ScreenLockWatcher(PollingWatcher[bool]):
    """Turns lock-state changes into lock/unlock notifications."""

    name = "screen lock"

    def __init__(
        self,
        dispatcher: Dispatcher,
        providers: Optional[list[LockStateProvider]] = None,
        poll_interval: float = 2.0,
    ) -> None:
        super().__init__(dispatcher, poll_interval)
        self.providers = (
            providers if providers is not None else [LoginctlLockState(), ScreenSaverLockState()]
        )

    def read(self) -> bool:
        for provider in self.providers:
            answer = provider.is_locked()
            if answer is not None:
                return answer
        return False

    def connect(self, on_lock: Callable[[], None], on_unlock: Callable[[], None]) -> None:
        """Route lock transitions to two callbacks."""
        self.subscribe(lambda locked: on_lock() if locked else on_unlock())
