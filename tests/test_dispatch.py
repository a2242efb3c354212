"""
Tests for background work and main-thread handoff.
"""

import threading

from dualingo.dispatch import MainThreadDispatcher, run_in_background


def test_drain_runs_in_order():
    dispatcher = MainThreadDispatcher()
    calls = []

    dispatcher.post(lambda: calls.append(1))
    dispatcher.post(lambda: calls.append(2))

    assert dispatcher.pending() == 2
    assert dispatcher.drain() == 2
    assert calls == [1, 2]
    assert dispatcher.pending() == 0


def test_drain_empty_returns_immediately():
    assert MainThreadDispatcher().drain() == 0
    assert MainThreadDispatcher().drain(timeout=0.01) == 0


def test_failing_callback_does_not_stop_drain():
    dispatcher = MainThreadDispatcher()
    calls = []

    def boom():
        raise RuntimeError("boom")

    dispatcher.post(boom)
    dispatcher.post(lambda: calls.append("after"))

    assert dispatcher.drain() == 2
    assert calls == ["after"]


def test_background_completion_runs_on_draining_thread():
    dispatcher = MainThreadDispatcher()
    threads = {}

    def work():
        threads["worker"] = threading.current_thread()
        dispatcher.post(lambda: threads.setdefault("callback", threading.current_thread()))

    worker = run_in_background(work)
    worker.join(timeout=5)

    assert worker.daemon
    assert dispatcher.drain(timeout=1) == 1
    assert threads["worker"] is worker
    assert threads["callback"] is threading.current_thread()
