# asgi.py - Uvicorn ASGI service
# ============================================================================
# FILE: cleanserve/services/asgi.py
# uvicorn.Server wrapped in the managed service interface
# Requires the 'asgi' extra: pip install cleanserve[asgi]
# ============================================================================

import threading
import logging
from typing import Any

from .base import BaseService
from ..deadline import Deadline
from ..exceptions import ServerClosed, ServiceStartError, ShutdownTimeout

logger = logging.getLogger(__name__)


class UvicornService(BaseService):
    """
    Runs an ASGI application on uvicorn.

    uvicorn skips its own signal handling off the main thread, so the
    LifecycleManager keeps ownership of SIGINT/SIGTERM. shutdown() asks
    the server to exit and forces it once the deadline passes.
    """

    def __init__(self, app: Any, host: str = "127.0.0.1", port: int = 8000, **config_kwargs):
        import uvicorn

        config_kwargs.setdefault("log_config", None)
        self.config = uvicorn.Config(app, host=host, port=port, **config_kwargs)
        self.server = uvicorn.Server(self.config)

        self._lock = threading.Lock()
        self._closed = False
        self._running = False
        self._stopped = threading.Event()

    @property
    def started(self) -> bool:
        return bool(self.server.started)

    def serve(self) -> None:
        with self._lock:
            if self._closed:
                raise ServerClosed("uvicorn server closed")
            self._running = True

        try:
            self.server.run()
        except SystemExit as e:
            # uvicorn exits on startup failures such as a port in use
            raise ServiceStartError(f"uvicorn failed to start (exit code {e.code})") from e
        finally:
            self._stopped.set()

        if not self.server.started:
            raise ServiceStartError("uvicorn stopped before it started serving")
        raise ServerClosed("uvicorn server closed")

    def shutdown(self, deadline: Deadline) -> None:
        with self._lock:
            self._closed = True
            running = self._running

        if not running:
            logger.debug("uvicorn server was never started, nothing to stop")
            return

        self.server.should_exit = True
        if not deadline.wait(self._stopped):
            self.server.force_exit = True
            raise ShutdownTimeout("uvicorn did not finish in-flight requests before the deadline")
        logger.info("uvicorn server stopped")
