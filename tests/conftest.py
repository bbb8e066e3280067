# tests/conftest.py
# Shared fakes, fixtures and platform skip marks

import sys
import threading

import pytest

from cleanserve.exceptions import ServerClosed
from cleanserve.services.base import BaseService

# Real signal delivery needs POSIX semantics
IS_WINDOWS = sys.platform == "win32"

skip_on_windows = pytest.mark.skipif(
    IS_WINDOWS,
    reason="Signal delivery tests need POSIX signals"
)


class RecordingService(BaseService):
    """Fake service that records serve/stop into a shared event list"""

    def __init__(self, events, fail_with=None, shutdown_error=None):
        self.events = events
        self.fail_with = fail_with
        self.shutdown_error = shutdown_error
        self.started = threading.Event()
        self.shutdown_calls = 0
        self.deadline = None
        self._stop = threading.Event()

    def serve(self):
        self.events.append("serve")
        self.started.set()
        if self.fail_with is not None:
            raise self.fail_with
        self._stop.wait()
        raise ServerClosed("stopped")

    def shutdown(self, deadline):
        self.shutdown_calls += 1
        self.deadline = deadline
        self.events.append("stop")
        self._stop.set()
        if self.shutdown_error is not None:
            raise self.shutdown_error


@pytest.fixture
def events():
    return []


@pytest.fixture
def service(events):
    return RecordingService(events)


@pytest.fixture
def recording_service_cls():
    return RecordingService


@pytest.fixture
def serve_in_thread():
    """Run manager.serve() off the main thread; joined on teardown"""
    threads = []

    def start(manager, timeout=None):
        t = threading.Thread(target=manager.serve, args=(timeout,), daemon=True)
        t.start()
        threads.append(t)
        return t

    yield start

    for t in threads:
        t.join(timeout=5.0)
