"""Serialized execution context for all controller state changes.

Every event source (reload timer, power and lock watchers, surface
completions, POSIX signal actions) delivers its work through a
``Dispatcher`` so that state mutations never interleave.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from typing import Any, Final, Protocol, TypeVar, runtime_checkable

logger: Final = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class TimerHandle(Protocol):
    """Handle returned by ``Dispatcher.call_later``."""

    def cancel(self) -> None:
        """Prevent the callback from running if it has not started yet."""
        ...


@runtime_checkable
class Dispatcher(Protocol):
    """Protocol for the single-threaded owner context."""

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        """Queue a callback to run on the context.

        Must be safe to call from any thread.
        """
        ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        """Run a callback on the context after ``delay`` seconds.

        Args:
            delay: Delay in seconds
            callback: Callable to run
            *args: Positional arguments for the callback

        Returns:
            Handle that can cancel the pending call
        """
        ...

    def run_in_executor(self, func: Callable[[], T], callback: Callable[[T], Any]) -> None:
        """Run blocking work off the context and deliver its result back.

        Args:
            func: Blocking callable (network check, subprocess query)
            callback: Called on the context with the return value of ``func``
        """
        ...


class AsyncioDispatcher:
    """Dispatcher backed by an asyncio event loop.

    Blocking work handed to ``run_in_executor`` runs on the loop's default
    thread pool; only its result comes back onto the loop.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        if self.loop.is_closed():
            logger.debug("Event loop closed, dropping %r", callback)
            return
        self.loop.call_soon_threadsafe(callback, *args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        return self.loop.call_later(delay, callback, *args)

    def run_in_executor(self, func: Callable[[], T], callback: Callable[[T], Any]) -> None:
        future = self.loop.run_in_executor(None, func)

        def _deliver(done: asyncio.Future[T]) -> None:
            if done.cancelled():
                return
            error = done.exception()
            if error is not None:
                logger.error("Background task %r failed: %s", func, error)
                return
            callback(done.result())

        future.add_done_callback(_deliver)


class _ManualHandle:
    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple[Any, ...]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: _ManualHandle) -> bool:
        return (self.when, self.seq) < (other.when, other.seq)


class ManualDispatcher:
    """Dispatcher driven by a virtual clock, for tests and dry runs.

    Nothing runs until ``run_pending`` or ``advance`` is called. Callbacks
    due at the same instant run in the order they were queued.
    """

    def __init__(self) -> None:
        self.time = 0.0
        self._queue: list[_ManualHandle] = []
        self._counter = itertools.count()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self.call_later(0, callback, *args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        handle = _ManualHandle(self.time + max(delay, 0), next(self._counter), callback, args)
        heapq.heappush(self._queue, handle)
        return handle

    def run_in_executor(self, func: Callable[[], T], callback: Callable[[T], Any]) -> None:
        """Queue the work; it runs, and delivers its result, on the next drive."""
        self.call_soon(lambda: callback(func()))

    @property
    def pending(self) -> int:
        """Number of queued callbacks that have not been cancelled."""
        return sum(1 for handle in self._queue if not handle.cancelled)

    def run_pending(self) -> int:
        """Run everything due at the current virtual time.

        Returns:
            Number of callbacks executed
        """
        return self.advance(0)

    def advance(self, seconds: float) -> int:
        """Move the virtual clock forward, running callbacks as they come due.

        Args:
            seconds: Amount of virtual time to advance

        Returns:
            Number of callbacks executed
        """
        deadline = self.time + seconds
        executed = 0
        while self._queue and self._queue[0].when <= deadline:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.time = max(self.time, handle.when)
            handle.callback(*handle.args)
            executed += 1
        self.time = deadline
        return executed
