# exceptions.py - Cleanserve Errors
# ============================================================================
# FILE: cleanserve/exceptions.py
# Error types shared by the lifecycle manager and service adapters
# ============================================================================


class CleanserveError(Exception):
    """Base class for all cleanserve errors."""
    pass


class ServerClosed(CleanserveError):
    """Raised by a service's serve() when it was stopped deliberately."""
    pass


class ShutdownTimeout(CleanserveError, TimeoutError):
    """Raised by a service's shutdown() when the deadline passes first."""
    pass


class AlreadyServedError(CleanserveError):
    """Raised when serve() is called on a manager that already served."""
    pass


class ServiceNotConfiguredError(CleanserveError):
    """Raised when serve() is called before a service was attached."""
    pass


class ConfigError(CleanserveError):
    """Raised when a serve configuration is invalid."""
    pass


class ServiceStartError(CleanserveError):
    """Raised by a service's serve() when it could not start serving."""
    pass
