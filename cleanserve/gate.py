# gate.py - One-Shot Shutdown Gate
# ============================================================================
# FILE: cleanserve/gate.py
# Single-winner latch that marks the move from serving to shutting down
# ============================================================================

import threading
import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class GateState(Enum):
    OPEN = "open"        # Serving normally
    CLOSING = "closing"  # Shutdown requested, sequence in progress
    CLOSED = "closed"    # Shutdown sequence finished


class ShutdownGate:
    """
    One-shot latch guaranteeing shutdown is triggered exactly once.

    Any number of threads may call trigger(); only the caller that moves
    the gate from OPEN to CLOSING wins and releases the wake event. Every
    other caller sees a no-op.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = GateState.OPEN
        self._wake = threading.Event()
        self.reason: Optional[str] = None

    @property
    def state(self) -> GateState:
        with self._lock:
            return self._state

    def trigger(self, reason: str = "manual") -> bool:
        """
        Request shutdown.

        Returns:
            True if this call won the OPEN -> CLOSING transition,
            False if the gate was already triggered.
        """
        with self._lock:
            if self._state is not GateState.OPEN:
                return False
            self._state = GateState.CLOSING
            self.reason = reason

        logger.info(f"Shutdown triggered by {reason}")
        self._wake.set()
        return True

    def is_triggered(self) -> bool:
        """Non-blocking check used to reject late registrations."""
        return self._state is not GateState.OPEN

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the gate is triggered. Returns False on timeout."""
        return self._wake.wait(timeout)

    def mark_closed(self):
        """Record that the shutdown sequence has finished."""
        with self._lock:
            if self._state is GateState.OPEN:
                raise RuntimeError("Cannot close a gate that was never triggered")
            self._state = GateState.CLOSED
