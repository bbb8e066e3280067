# tests/test_core/test_stack.py

import threading

from cleanserve.stack import ActionStack, CleanupAction


def test_pop_empty_returns_none():
    stack = ActionStack()
    assert stack.pop() is None
    assert len(stack) == 0


def test_lifo_order():
    """Draining returns actions in reverse push order"""
    stack = ActionStack()
    for i in range(1, 6):
        stack.push(CleanupAction(print, i))

    drained = [action.argument for action in stack.drain()]

    assert drained == [5, 4, 3, 2, 1]
    assert len(stack) == 0


def test_interleaved_push_pop():
    stack = ActionStack()
    stack.push(CleanupAction(print, "a"))
    stack.push(CleanupAction(print, "b"))
    assert stack.pop().argument == "b"

    stack.push(CleanupAction(print, "c"))
    assert [a.argument for a in stack.drain()] == ["c", "a"]


def test_action_calls_callback_with_argument():
    seen = []
    action = CleanupAction(seen.append, {"conn": 1})

    action()

    assert seen == [{"conn": 1}]
    assert action.name == "append"


def test_concurrent_pushes_are_not_lost():
    stack = ActionStack()
    barrier = threading.Barrier(8)

    def worker(n):
        barrier.wait()
        for i in range(200):
            stack.push(CleanupAction(print, (n, i)))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(stack) == 1600

    # Per-thread order is still LIFO
    drained = [a.argument for a in stack.drain()]
    for n in range(8):
        mine = [i for (owner, i) in drained if owner == n]
        assert mine == list(reversed(range(200)))


def test_concurrent_pops_return_each_action_once():
    stack = ActionStack()
    for i in range(1000):
        stack.push(CleanupAction(print, i))

    popped = []
    lock = threading.Lock()

    def worker():
        while True:
            action = stack.pop()
            if action is None:
                return
            with lock:
                popped.append(action.argument)

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(popped) == list(range(1000))
