# health.py - Health Checks
# ============================================================================
# FILE: cleanserve/monitoring/health.py
# Readiness checks for load balancers; fail as soon as shutdown begins
# ============================================================================

import time
import logging
from enum import Enum
from typing import Any, Callable, Dict

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthCheck:
    """
    Health check registry.
    Results are cached briefly so a busy probe does not rerun every check.
    """

    def __init__(self, cache_duration: float = 1.0):
        self.checks: Dict[str, Callable[[], bool]] = {}
        self.cache_duration = cache_duration
        self._cached_result = None
        self._cached_time = 0.0

    def register_check(self, name: str, check_fn: Callable[[], bool]):
        """Register a health check function."""
        self.checks[name] = check_fn

    def check_all(self, force: bool = False) -> Dict[str, Any]:
        """
        Run all health checks.
        Returns a dict with status and details.
        """
        now = time.time()

        if not force and self._cached_result is not None:
            if now - self._cached_time < self.cache_duration:
                return self._cached_result

        results = {}
        overall_status = HealthStatus.HEALTHY

        for name, check_fn in self.checks.items():
            try:
                result = check_fn()
                results[name] = {
                    "status": "ok" if result else "error",
                    "message": "Healthy" if result else "Check failed"
                }
                if not result:
                    overall_status = HealthStatus.UNHEALTHY
            except Exception as e:
                logger.error(f"Health check {name} raised: {e}")
                results[name] = {
                    "status": "error",
                    "message": str(e)
                }
                overall_status = HealthStatus.UNHEALTHY

        response = {
            "status": overall_status.value,
            "timestamp": now,
            "checks": results
        }

        self._cached_result = response
        self._cached_time = now

        return response


def lifecycle_check(manager) -> Callable[[], bool]:
    """Check that passes only while the manager has not begun shutting down."""
    def check() -> bool:
        return not manager.is_shutting_down()
    return check
