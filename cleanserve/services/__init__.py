"""
Services that can be run under a LifecycleManager.

UvicornService lives in cleanserve.services.asgi and needs the 'asgi' extra.
"""

from .base import BaseService
from .http import HTTPService, TrackingHTTPServer

__all__ = ["BaseService", "HTTPService", "TrackingHTTPServer"]
