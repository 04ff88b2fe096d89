"""Tests for the dispatcher implementations."""

from __future__ import annotations

import asyncio
import threading
import time

from deskweb.dispatch import AsyncioDispatcher, Dispatcher, ManualDispatcher


def test_manual_dispatcher_runs_nothing_until_driven() -> None:
    dispatcher = ManualDispatcher()
    calls: list[str] = []

    dispatcher.call_soon(calls.append, "soon")
    assert calls == []
    assert dispatcher.pending == 1

    assert dispatcher.run_pending() == 1
    assert calls == ["soon"]
    assert dispatcher.pending == 0


def test_manual_dispatcher_orders_by_due_time_then_queue_order() -> None:
    dispatcher = ManualDispatcher()
    calls: list[str] = []

    dispatcher.call_later(10, calls.append, "late")
    dispatcher.call_later(5, calls.append, "first")
    dispatcher.call_later(5, calls.append, "second")

    dispatcher.advance(7)
    assert calls == ["first", "second"]
    assert dispatcher.time == 7

    dispatcher.advance(3)
    assert calls == ["first", "second", "late"]


def test_manual_dispatcher_skips_cancelled_handles() -> None:
    dispatcher = ManualDispatcher()
    calls: list[int] = []

    handle = dispatcher.call_later(1, calls.append, 1)
    handle.cancel()

    assert dispatcher.pending == 0
    assert dispatcher.advance(5) == 0
    assert calls == []


def test_manual_dispatcher_runs_callbacks_queued_while_advancing() -> None:
    dispatcher = ManualDispatcher()
    times: list[float] = []

    def tick() -> None:
        times.append(dispatcher.time)
        dispatcher.call_later(2, tick)

    dispatcher.call_later(2, tick)
    dispatcher.advance(7)

    assert times == [2, 4, 6]


def test_dispatchers_satisfy_protocol() -> None:
    loop = asyncio.new_event_loop()
    try:
        assert isinstance(ManualDispatcher(), Dispatcher)
        assert isinstance(AsyncioDispatcher(loop), Dispatcher)
    finally:
        loop.close()


def test_asyncio_dispatcher_accepts_work_from_other_threads() -> None:
    loop = asyncio.new_event_loop()
    dispatcher = AsyncioDispatcher(loop)
    results: list[str] = []

    def finish(value: str) -> None:
        results.append(value)
        loop.stop()

    worker = threading.Thread(target=dispatcher.call_soon, args=(finish, "from-thread"))
    worker.start()
    worker.join()

    loop.call_later(5, loop.stop)
    try:
        loop.run_forever()
    finally:
        loop.close()

    assert results == ["from-thread"]


def test_asyncio_dispatcher_call_later_can_be_cancelled() -> None:
    loop = asyncio.new_event_loop()
    dispatcher = AsyncioDispatcher(loop)
    results: list[str] = []

    handle = dispatcher.call_later(0.01, results.append, "cancelled")
    handle.cancel()
    dispatcher.call_later(0.02, loop.stop)
    try:
        loop.run_forever()
    finally:
        loop.close()

    assert results == []


def test_manual_dispatcher_delivers_executor_result_when_driven() -> None:
    dispatcher = ManualDispatcher()
    results: list[int] = []

    dispatcher.run_in_executor(lambda: 42, results.append)
    assert results == []

    dispatcher.run_pending()
    assert results == [42]


def test_asyncio_dispatcher_runs_blocking_work_off_the_loop() -> None:
    loop = asyncio.new_event_loop()
    dispatcher = AsyncioDispatcher(loop)
    loop_thread = threading.get_ident()
    threads: dict[str, int] = {}
    timer_fired_after: list[float] = []
    started = time.monotonic()

    def slow_check() -> bool:
        threads["work"] = threading.get_ident()
        time.sleep(0.3)
        return True

    def deliver(value: bool) -> None:
        threads["callback"] = threading.get_ident()
        assert value is True
        loop.stop()

    dispatcher.run_in_executor(slow_check, deliver)
    dispatcher.call_later(0.05, lambda: timer_fired_after.append(time.monotonic() - started))
    loop.call_later(5, loop.stop)
    try:
        loop.run_forever()
    finally:
        loop.close()

    assert threads["work"] != loop_thread
    assert threads["callback"] == loop_thread
    assert len(timer_fired_after) == 1
    assert timer_fired_after[0] < 0.3


def test_asyncio_dispatcher_drops_callbacks_after_loop_closed() -> None:
    loop = asyncio.new_event_loop()
    dispatcher = AsyncioDispatcher(loop)
    loop.close()

    dispatcher.call_soon(lambda: None)
