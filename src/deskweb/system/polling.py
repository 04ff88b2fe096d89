"""Edge-triggered polling of OS state on the dispatcher."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Final, Generic, TypeVar

from deskweb.dispatch import Dispatcher, TimerHandle

logger: Final = logging.getLogger(__name__)

T = TypeVar("T")


class PollingWatcher(ABC, Generic[T]):
    """Samples a value periodically and notifies subscribers when it changes.

    Subclasses implement ``read``. Periodic samples are taken through
    ``Dispatcher.run_in_executor`` so slow commands never hold up the
    context; the result is compared and subscribers are notified on the
    context. The first sample only establishes the baseline and never
    notifies.
    """

    name = "watcher"

    def __init__(self, dispatcher: Dispatcher, poll_interval: float = 5.0) -> None:
        self.dispatcher = dispatcher
        self.poll_interval = poll_interval
        self.value: T | None = None
        self._subscribers: list[Callable[[T], None]] = []
        self._handle: TimerHandle | None = None

    @abstractmethod
    def read(self) -> T:
        """Sample the current value. May block; called off the context."""

    def subscribe(self, callback: Callable[[T], None]) -> None:
        """Register a callback invoked with the new value on every change."""
        self._subscribers.append(callback)

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """Take the baseline sample and begin polling."""
        if self._handle is not None:
            return
        self.value = self.read()
        logger.debug("%s baseline: %s", self.name, self.value)
        self._handle = self.dispatcher.call_later(self.poll_interval, self._tick)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def poll(self) -> bool:
        """Sample once in place and notify on change.

        Returns:
            True if the value changed
        """
        return self.update(self.read())

    def update(self, new_value: T) -> bool:
        """Record a sample and notify subscribers if it differs.

        Returns:
            True if the value changed
        """
        if new_value == self.value:
            return False

        logger.info("%s changed: %s → %s", self.name, self.value, new_value)
        self.value = new_value
        for callback in list(self._subscribers):
            callback(new_value)
        return True

    def _tick(self) -> None:
        if self._handle is None:
            return
        self._handle = self.dispatcher.call_later(self.poll_interval, self._tick)
        self.dispatcher.run_in_executor(self.read, self._sampled)

    def _sampled(self, new_value: T) -> None:
        if self._handle is None:
            return
        self.update(new_value)
