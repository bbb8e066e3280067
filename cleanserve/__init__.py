# cleanserve/__init__.py

from ._version import __version__
from .deadline import Deadline
from .exceptions import (
    AlreadyServedError,
    CleanserveError,
    ConfigError,
    ServerClosed,
    ServiceNotConfiguredError,
    ServiceStartError,
    ShutdownTimeout,
)
from .gate import GateState, ShutdownGate
from .lifecycle import (
    LifecycleManager,
    ServeState,
    get_default_manager,
    post_cleanup_pop,
    post_cleanup_push,
    pre_cleanup_pop,
    pre_cleanup_push,
    request_shutdown,
    serve,
)
from .services import BaseService, HTTPService
from .signals import SignalWatcher
from .stack import ActionStack, CleanupAction

__all__ = [
    "ActionStack",
    "AlreadyServedError",
    "BaseService",
    "CleanserveError",
    "CleanupAction",
    "ConfigError",
    "Deadline",
    "GateState",
    "HTTPService",
    "LifecycleManager",
    "ServeState",
    "ServerClosed",
    "ServiceNotConfiguredError",
    "ServiceStartError",
    "ShutdownGate",
    "ShutdownTimeout",
    "SignalWatcher",
    "get_default_manager",
    "post_cleanup_pop",
    "post_cleanup_push",
    "pre_cleanup_pop",
    "pre_cleanup_push",
    "request_shutdown",
    "serve",
    "__version__",
]
