# http.py - Standard library HTTP service
# ============================================================================
# FILE: cleanserve/services/http.py
# ThreadingHTTPServer wrapped in the managed service interface
# ============================================================================

import threading
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple, Type

from .base import BaseService
from ..deadline import Deadline
from ..exceptions import ServerClosed, ShutdownTimeout

logger = logging.getLogger(__name__)


class TrackingHTTPServer(ThreadingHTTPServer):
    """
    ThreadingHTTPServer that counts in-flight requests so shutdown can
    wait for them without making the handler threads non-daemon.
    """

    def __init__(self, *args, **kwargs):
        self._active = 0
        self._idle = threading.Condition()
        super().__init__(*args, **kwargs)

    @property
    def active_requests(self) -> int:
        with self._idle:
            return self._active

    def process_request(self, request, client_address):
        # Counted on the serving thread so the count is complete once
        # serve_forever() has returned
        with self._idle:
            self._active += 1
        try:
            super().process_request(request, client_address)
        except BaseException:
            self._request_done()
            raise

    def process_request_thread(self, request, client_address):
        try:
            super().process_request_thread(request, client_address)
        finally:
            self._request_done()

    def _request_done(self):
        with self._idle:
            self._active -= 1
            self._idle.notify_all()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        with self._idle:
            return self._idle.wait_for(lambda: self._active == 0, timeout)


class HTTPService(BaseService):
    """
    Serves HTTP with the standard library server.

    The socket is bound inside serve(), so an address already in use is
    reported as a serve failure. Calling shutdown() before serve() makes
    the later serve() raise ServerClosed straight away.
    """

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8000,
        handler_class: Type[BaseHTTPRequestHandler] = BaseHTTPRequestHandler,
        server_class: Type[TrackingHTTPServer] = TrackingHTTPServer,
        poll_interval: float = 0.05,
    ):
        self.host = host
        self.port = port
        self.handler_class = handler_class
        self.server_class = server_class
        self.poll_interval = poll_interval

        self.httpd: Optional[TrackingHTTPServer] = None
        self.ready = threading.Event()
        self._lock = threading.Lock()
        self._closed = False
        self._stopped = threading.Event()

    @property
    def server_address(self) -> Tuple[str, int]:
        """Bound address once serving (resolves port 0), else the configured one."""
        if self.httpd is not None:
            return self.httpd.server_address[:2]
        return (self.host, self.port)

    def serve(self) -> None:
        with self._lock:
            if self._closed:
                raise ServerClosed("HTTP server closed")
            self.httpd = self.server_class((self.host, self.port), self.handler_class)

        host, port = self.server_address
        logger.info(f"Serving HTTP on {host}:{port}")
        self.ready.set()
        try:
            self.httpd.serve_forever(poll_interval=self.poll_interval)
        finally:
            self._stopped.set()

        # serve_forever() only returns after shutdown()
        raise ServerClosed("HTTP server closed")

    def shutdown(self, deadline: Deadline) -> None:
        with self._lock:
            self._closed = True
            httpd = self.httpd

        if httpd is None:
            logger.debug("HTTP server was never started, nothing to stop")
            return

        # BaseServer.shutdown() blocks until the serve loop exits
        threading.Thread(
            target=httpd.shutdown, name="cleanserve-http-stop", daemon=True
        ).start()
        try:
            if not deadline.wait(self._stopped):
                raise ShutdownTimeout("HTTP server did not stop accepting before the deadline")
        finally:
            # Listening socket is released whether or not the loop stopped in time
            httpd.server_close()

        if not httpd.wait_idle(deadline.remaining()):
            raise ShutdownTimeout(
                f"{httpd.active_requests} HTTP requests still in flight at the deadline"
            )
        logger.info("HTTP server stopped")
