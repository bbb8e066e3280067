# stack.py - Cleanup Action Stack
# ============================================================================
# FILE: cleanserve/stack.py
# Thread-safe LIFO stack of (callback, argument) cleanup actions
# ============================================================================

import threading
from dataclasses import dataclass
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class CleanupAction(Generic[T]):
    """
    A registered cleanup callback together with the argument it will
    be given when the action runs.
    """
    callback: Callable[[T], None]
    argument: T

    def __call__(self) -> None:
        self.callback(self.argument)

    @property
    def name(self) -> str:
        return getattr(self.callback, "__name__", repr(self.callback))


class ActionStack:
    """
    Last-in-first-out collection of cleanup actions.
    Thread-safe for concurrent push/pop from any number of threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._actions: List[CleanupAction] = []

    def push(self, action: CleanupAction):
        """Put an action on top of the stack."""
        with self._lock:
            self._actions.append(action)

    def pop(self) -> Optional[CleanupAction]:
        """Remove and return the top action, or None if the stack is empty."""
        with self._lock:
            if not self._actions:
                return None
            return self._actions.pop()

    def drain(self) -> Iterator[CleanupAction]:
        """
        Pop actions one at a time until the stack is empty.

        Each pop is atomic on its own; the lock is not held while the
        caller runs the yielded action.
        """
        while True:
            action = self.pop()
            if action is None:
                return
            yield action

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)
