# tests/test_core/test_gate.py

import threading

import pytest

from cleanserve.gate import GateState, ShutdownGate


def test_initial_state():
    gate = ShutdownGate()
    assert gate.state is GateState.OPEN
    assert not gate.is_triggered()
    assert gate.wait(timeout=0.01) is False


def test_first_trigger_wins():
    gate = ShutdownGate()

    assert gate.trigger("SIGTERM") is True
    assert gate.trigger("service exit") is False

    assert gate.state is GateState.CLOSING
    assert gate.reason == "SIGTERM"
    assert gate.is_triggered()
    assert gate.wait(timeout=0.01) is True


def test_single_winner_under_contention():
    """Exactly one of N concurrent triggers observes the win"""
    gate = ShutdownGate()
    n = 32
    barrier = threading.Barrier(n)
    results = []
    lock = threading.Lock()

    def trigger(i):
        barrier.wait()
        won = gate.trigger(f"trigger-{i}")
        with lock:
            results.append((i, won))

    threads = [threading.Thread(target=trigger, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [i for i, won in results if won]
    assert len(winners) == 1
    assert gate.reason == f"trigger-{winners[0]}"


def test_waiters_released_by_trigger():
    gate = ShutdownGate()
    released = []

    def waiter():
        gate.wait()
        released.append(True)

    threads = [threading.Thread(target=waiter) for _ in range(4)]
    for t in threads:
        t.start()

    gate.trigger()
    for t in threads:
        t.join(timeout=2.0)

    assert released == [True] * 4


def test_mark_closed():
    gate = ShutdownGate()
    with pytest.raises(RuntimeError):
        gate.mark_closed()

    gate.trigger()
    gate.mark_closed()

    assert gate.state is GateState.CLOSED
    assert gate.is_triggered()
    assert gate.trigger() is False
