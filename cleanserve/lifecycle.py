# lifecycle.py - Graceful Serve Lifecycle
# ============================================================================
# FILE: cleanserve/lifecycle.py
# Serve a service, wait for a signal or failure, run cleanup stacks around
# a time-bounded shutdown
# ============================================================================

import time
import threading
import logging
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

from .deadline import Deadline
from .exceptions import AlreadyServedError, ServerClosed, ServiceNotConfiguredError
from .gate import ShutdownGate
from .monitoring.metrics import LifecycleMetrics
from .signals import DEFAULT_SIGNALS, SignalWatcher
from .stack import ActionStack, CleanupAction

logger = logging.getLogger(__name__)

PRE = "pre"
POST = "post"


class ServeState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    SHUTDOWN_REQUESTED = "shutdown_requested"
    PRE_CLEANUP = "pre_cleanup"
    STOPPING = "stopping"
    POST_CLEANUP = "post_cleanup"
    DONE = "done"


class LifecycleManager:
    """
    Runs a service with cleanup routines before and after it is shut down.

    serve() starts the service and a signal watcher in the background and
    blocks until either of them requests shutdown. It then runs the
    pre-cleanup stack, calls the service's shutdown() with an optional
    deadline, and always runs the post-cleanup stack afterwards. Failures
    along the way are logged, never raised, so shutdown keeps moving.

    Example:
        manager = LifecycleManager(HTTPService(port=8080))
        manager.pre_cleanup_push(announce_draining, "api")
        manager.post_cleanup_push(close_pool, pool)
        manager.serve(timeout=5.0)
    """

    def __init__(
        self,
        service=None,
        signals: Iterable[int] = DEFAULT_SIGNALS,
        metrics: Optional[LifecycleMetrics] = None,
    ):
        self.service = service
        self.signals = tuple(signals)
        self.metrics = metrics or LifecycleMetrics()

        self._pre = ActionStack()
        self._post = ActionStack()
        self._gate = ShutdownGate()
        self._watcher: Optional[SignalWatcher] = None

        # Held across check-and-mutate so no push can slip in after the
        # drain has started
        self._registration_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._state = ServeState.IDLE
        self._served = False
        self._done = threading.Event()
        self._shutdown_started_at: Optional[float] = None
        self._shutdown_finished_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Cleanup registration
    # ------------------------------------------------------------------

    def pre_cleanup_push(self, callback: Callable[[Any], None], argument: Any = None) -> bool:
        """
        Push a routine that runs before the service is shut down onto the
        top of the pre-cleanup stack. It will be called with argument.

        Returns:
            False if shutdown has already been triggered and the routine
            was dropped.
        """
        return self._cleanup_push(self._pre, PRE, callback, argument)

    def pre_cleanup_pop(self) -> Optional[CleanupAction]:
        """Remove and return the top pre-cleanup routine, if any."""
        return self._cleanup_pop(self._pre, PRE)

    def post_cleanup_push(self, callback: Callable[[Any], None], argument: Any = None) -> bool:
        """
        Push a routine that runs after the service is shut down onto the
        top of the post-cleanup stack. It will be called with argument.
        """
        return self._cleanup_push(self._post, POST, callback, argument)

    def post_cleanup_pop(self) -> Optional[CleanupAction]:
        """Remove and return the top post-cleanup routine, if any."""
        return self._cleanup_pop(self._post, POST)

    def _cleanup_push(self, stack: ActionStack, phase: str, callback, argument) -> bool:
        action = CleanupAction(callback, argument)
        with self._registration_lock:
            if self._gate.is_triggered():
                logger.warning(f"Push failed: closed ({phase}-cleanup {action.name})")
                self.metrics.record_rejected("push")
                return False
            stack.push(action)
            self.metrics.set_pending(phase, len(stack))
        return True

    def _cleanup_pop(self, stack: ActionStack, phase: str) -> Optional[CleanupAction]:
        with self._registration_lock:
            if self._gate.is_triggered():
                logger.warning(f"Pop failed: closed ({phase}-cleanup)")
                self.metrics.record_rejected("pop")
                return None
            action = stack.pop()
            self.metrics.set_pending(phase, len(stack))
        return action

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServeState:
        with self._state_lock:
            state = self._state
        if state is ServeState.RUNNING and self._gate.is_triggered():
            return ServeState.SHUTDOWN_REQUESTED
        return state

    @property
    def interrupted(self) -> bool:
        """True once a termination signal has been seen during serve()."""
        return self._watcher is not None and self._watcher.interrupted

    @property
    def shutdown_reason(self) -> Optional[str]:
        return self._gate.reason

    def is_shutting_down(self) -> bool:
        return self._gate.is_triggered()

    def request_shutdown(self, reason: str = "manual") -> bool:
        """
        Ask serve() to begin shutting down.

        Returns:
            True if this call triggered shutdown, False if it was already
            triggered by something else.
        """
        return self._trigger(reason)

    def notify_signal(self, signum: int):
        """Deliver a termination signal as if it came from the OS."""
        if self._watcher is None:
            raise RuntimeError("serve() is not running")
        self._watcher.notify(signum)

    def wait_done(self, timeout: Optional[float] = None) -> bool:
        """Block until serve() has finished its shutdown sequence."""
        return self._done.wait(timeout)

    def get_status(self) -> Dict[str, Any]:
        """
        Get lifecycle status information.

        Returns:
            Dictionary with state, trigger and pending cleanup details
        """
        duration = None
        if self._shutdown_started_at is not None and self._shutdown_finished_at is not None:
            duration = self._shutdown_finished_at - self._shutdown_started_at
        return {
            "state": self.state.value,
            "gate": self._gate.state.value,
            "shutdown_reason": self._gate.reason,
            "interrupted": self.interrupted,
            "pending_pre_cleanup": len(self._pre),
            "pending_post_cleanup": len(self._post),
            "shutdown_duration_seconds": duration,
        }

    def _set_state(self, state: ServeState):
        with self._state_lock:
            self._state = state
        logger.debug(f"Lifecycle state: {state.value}")

    def _trigger(self, reason: str) -> bool:
        return self._gate.trigger(reason=reason)

    # ------------------------------------------------------------------
    # Serve
    # ------------------------------------------------------------------

    def serve(self, timeout: Optional[float] = None):
        """
        Run the service and block until its shutdown sequence is done.

        A manager serves once. Its gate cannot be reopened, so a second
        call raises AlreadyServedError instead of blocking forever on a
        shutdown request that can never arrive. Failures inside the
        shutdown sequence are still only logged.

        Args:
            timeout: Seconds the service's shutdown() may take. None or
                <= 0 waits for it indefinitely.

        Raises:
            ServiceNotConfiguredError: no service attached
            AlreadyServedError: this manager has already served
        """
        if self.service is None:
            raise ServiceNotConfiguredError("No service to serve")

        with self._state_lock:
            if self._served:
                raise AlreadyServedError("This LifecycleManager has already served")
            self._served = True
            self._state = ServeState.RUNNING

        service_name = getattr(self.service, "name", type(self.service).__name__)
        logger.info(f"Serving {service_name} (shutdown timeout: {timeout or 'none'})")

        self._watcher = SignalWatcher(self._gate, self.signals)
        self._watcher.start()
        try:
            threading.Thread(
                target=self._run_service, name="cleanserve-service", daemon=True
            ).start()

            # Signal handlers only run on the main thread between bytecodes,
            # so never park it in one unbounded wait
            while not self._gate.wait(0.5):
                pass
            self._shutdown(timeout)
        finally:
            self._watcher.stop()
            self._done.set()

    def _run_service(self):
        reason = "service exit"
        try:
            self.service.serve()
        except ServerClosed:
            logger.debug("Service closed")
        except Exception as e:
            reason = "service error"
            logger.error(f"Serve failed: {e}", exc_info=True)
        finally:
            # The service stopping on its own is a shutdown request too
            self._trigger(reason)

    def _shutdown(self, timeout: Optional[float]):
        self._shutdown_started_at = time.monotonic()
        logger.info(f"Shutting down ({self._gate.reason})")
        self.metrics.record_trigger(self._gate.reason)

        # Let any registration that passed its check finish first
        with self._registration_lock:
            pass

        self._set_state(ServeState.PRE_CLEANUP)
        self._run_cleanup(self._pre, PRE)
        try:
            self._set_state(ServeState.STOPPING)
            self._stop_service(timeout)
        finally:
            self._set_state(ServeState.POST_CLEANUP)
            self._run_cleanup(self._post, POST)

            self._gate.mark_closed()
            self._shutdown_finished_at = time.monotonic()
            self.metrics.record_shutdown_duration(
                self._shutdown_finished_at - self._shutdown_started_at
            )
            self._set_state(ServeState.DONE)
            logger.info("Graceful shutdown complete.")

    def _stop_service(self, timeout: Optional[float]):
        with Deadline(timeout) as deadline:
            try:
                self.service.shutdown(deadline)
            except Exception as e:
                self.metrics.record_stop_failure()
                logger.error(f"Shutdown failed: {e}")

    def _run_cleanup(self, stack: ActionStack, phase: str):
        for action in stack.drain():
            ok = True
            try:
                logger.info(f"Running {phase}-cleanup {action.name}...")
                action()
            except Exception:
                ok = False
                logger.exception(f"Error in {phase}-cleanup {action.name}")
            self.metrics.record_cleanup(phase, ok)
        self.metrics.set_pending(phase, 0)


# ----------------------------------------------------------------------
# Process-wide default instance
# ----------------------------------------------------------------------

# Lives as long as the process; created on first use and never reset
_default_manager: Optional[LifecycleManager] = None
_default_lock = threading.Lock()


def get_default_manager() -> LifecycleManager:
    """Get the process-wide lifecycle manager, creating it on first use."""
    global _default_manager
    with _default_lock:
        if _default_manager is None:
            _default_manager = LifecycleManager()
        return _default_manager


def serve(service, timeout: Optional[float] = None):
    """
    Run service with the default manager's cleanup routines.

    The default manager is never reset, so this can be called once per
    process; a second call raises AlreadyServedError.
    """
    manager = get_default_manager()
    manager.service = service
    manager.serve(timeout)


def pre_cleanup_push(callback: Callable[[Any], None], argument: Any = None) -> bool:
    """Convenience function to push a pre-cleanup routine on the default manager."""
    return get_default_manager().pre_cleanup_push(callback, argument)


def pre_cleanup_pop() -> Optional[CleanupAction]:
    return get_default_manager().pre_cleanup_pop()


def post_cleanup_push(callback: Callable[[Any], None], argument: Any = None) -> bool:
    """Convenience function to push a post-cleanup routine on the default manager."""
    return get_default_manager().post_cleanup_push(callback, argument)


def post_cleanup_pop() -> Optional[CleanupAction]:
    return get_default_manager().post_cleanup_pop()


def request_shutdown(reason: str = "manual") -> bool:
    return get_default_manager().request_shutdown(reason)
