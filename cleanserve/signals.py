# signals.py - Termination Signal Watcher
# ============================================================================
# FILE: cleanserve/signals.py
# Turns SIGINT/SIGTERM into a single graceful shutdown request
# ============================================================================

import queue
import signal
import logging
import threading
from typing import Any, Dict, Iterable, Optional

from .gate import ShutdownGate

logger = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)

_STOP = object()


def signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class SignalWatcher:
    """
    Watches termination signals for the life of one serve() call.

    The OS-level handler only enqueues the signal number. A background
    thread consumes the queue: the first request triggers the gate,
    anything after that is logged and ignored. The watcher never exits
    the process itself.
    """

    def __init__(self, gate: ShutdownGate, signals: Iterable[int] = DEFAULT_SIGNALS):
        self.gate = gate
        self.signals = tuple(signals)
        self.interrupted = False
        # SimpleQueue.put is reentrant, so it is safe from a signal handler
        self._queue: "queue.SimpleQueue[Any]" = queue.SimpleQueue()
        self._original_handlers: Dict[int, Any] = {}
        self._thread: Optional[threading.Thread] = None

    def start(self):
        """Install signal handlers and start the watcher thread."""
        self._install_handlers()
        self._thread = threading.Thread(
            target=self._run, name="cleanserve-signal-watcher", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 5.0):
        """Restore the previous handlers and stop the watcher thread."""
        self._restore_handlers()
        if self._thread is not None:
            self._queue.put(_STOP)
            self._thread.join(timeout=timeout)
            self._thread = None

    def notify(self, signum: int):
        """Deliver a termination request to the watcher."""
        self._queue.put(signum)

    def _install_handlers(self):
        if threading.current_thread() is not threading.main_thread():
            logger.warning(
                "Not running in the main thread, signal handlers not installed"
            )
            return

        for sig in self.signals:
            self._original_handlers[sig] = signal.signal(sig, self._handle_signal)

    def _restore_handlers(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers = {}

    def _handle_signal(self, signum, frame):
        self.notify(signum)

    def _run(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            self._on_signal(item)

    def _on_signal(self, signum: int):
        name = signal_name(signum)
        logger.info(f"System call: {name}")

        if self.interrupted:
            logger.info(f"Already interrupted, ignoring {name}")
            return
        self.interrupted = True

        if self.gate.is_triggered():
            logger.info(f"Shutdown already in progress, ignoring {name}")
            return

        if not self.gate.trigger(reason=name):
            logger.debug(f"Lost shutdown race, ignoring {name}")
