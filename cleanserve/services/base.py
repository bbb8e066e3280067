# base.py - Managed service interface
# ============================================================================
# FILE: cleanserve/services/base.py
# Abstract base class for services run under a LifecycleManager
# ============================================================================

from abc import ABC, abstractmethod

from ..deadline import Deadline


class BaseService(ABC):
    """
    Abstract base class for managed services.

    A LifecycleManager only needs two things from a service: a blocking
    serve() and a deadline-bound shutdown(). Any object with those two
    methods works; subclassing is a convenience.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def serve(self) -> None:
        """
        Run the service until it stops.

        Raises:
            ServerClosed: the service was stopped through shutdown()
            Exception: anything else means the service failed
        """
        pass

    @abstractmethod
    def shutdown(self, deadline: Deadline) -> None:
        """
        Stop accepting work, finish in-flight work and release resources.

        Raises:
            ShutdownTimeout: the deadline passed before shutdown finished
        """
        pass
