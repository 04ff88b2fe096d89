"""Repeating reload timer for the web wallpaper."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Final

from deskweb.dispatch import Dispatcher, TimerHandle

logger: Final = logging.getLogger(__name__)


class ReloadScheduler:
    """Owns a single repeating timer on the dispatcher.

    Each firing re-arms the timer before invoking the callback, so the
    callback always runs on the serialized context and never overlaps
    another firing. ``schedule`` and ``cancel`` bump a generation counter;
    a firing from an older generation is ignored even if it was already
    queued when the timer was cancelled.
    """

    def __init__(self, dispatcher: Dispatcher, callback: Callable[[], None]) -> None:
        """Initialize the scheduler.

        Args:
            dispatcher: Serialized context the timer runs on
            callback: Called on every firing
        """
        self.dispatcher = dispatcher
        self.callback = callback
        self.interval: float | None = None
        self._handle: TimerHandle | None = None
        self._generation = 0

    @property
    def is_active(self) -> bool:
        """Whether a timer is currently armed."""
        return self._handle is not None

    def schedule(self, interval: float) -> None:
        """Replace any existing timer with one firing every ``interval`` seconds."""
        if interval <= 0:
            raise ValueError(f"Reload interval must be positive, got {interval}")

        self.cancel()
        self.interval = interval
        self._handle = self.dispatcher.call_later(interval, self._fire, self._generation)
        logger.debug("Reload timer armed (every %.0fs)", interval)

    def cancel(self) -> None:
        """Stop the timer. Safe to call when no timer is armed."""
        self._generation += 1
        if self._handle is None:
            return

        self._handle.cancel()
        self._handle = None
        self.interval = None
        logger.debug("Reload timer cancelled")

    def _fire(self, generation: int) -> None:
        if generation != self._generation or self.interval is None:
            return

        self._handle = self.dispatcher.call_later(self.interval, self._fire, generation)
        self.callback()
