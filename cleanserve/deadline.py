# deadline.py - Shutdown Deadline
# ============================================================================
# FILE: cleanserve/deadline.py
# Optional time bound handed to a service's shutdown()
# ============================================================================

import threading
import time
from typing import Optional


class Deadline:
    """
    Time bound for a shutdown call.

    A timeout of None or <= 0 gives an unbounded deadline that never
    expires. cancel() releases anyone waiting through wait() early, and
    the context manager form cancels on exit.

    Example:
        with Deadline(5.0) as deadline:
            service.shutdown(deadline)
    """

    def __init__(self, timeout: Optional[float] = None):
        if timeout is not None and timeout <= 0:
            timeout = None
        self.timeout = timeout
        self._expires_at = time.monotonic() + timeout if timeout is not None else None
        self._cancelled = threading.Event()

    @classmethod
    def unbounded(cls) -> "Deadline":
        return cls(None)

    @property
    def bounded(self) -> bool:
        return self._expires_at is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before expiry, or None if unbounded."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        if self.cancelled:
            return True
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def cancel(self):
        self._cancelled.set()

    def wait(self, event: threading.Event, poll: float = 0.05) -> bool:
        """
        Wait for event until the deadline passes or is cancelled.

        Returns:
            True if the event was set in time, False otherwise.
        """
        while not event.is_set():
            if self.expired():
                return False
            remaining = self.remaining()
            step = poll if remaining is None else min(poll, remaining)
            event.wait(step)
        return True

    def __enter__(self) -> "Deadline":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cancel()
        return False

    def __repr__(self) -> str:
        if self._expires_at is None:
            return "Deadline(unbounded)"
        return f"Deadline(remaining={self.remaining():.3f}s)"
