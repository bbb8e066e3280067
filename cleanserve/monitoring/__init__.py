from .health import HealthCheck, HealthStatus, lifecycle_check
from .metrics import LifecycleMetrics

__all__ = ["HealthCheck", "HealthStatus", "LifecycleMetrics", "lifecycle_check"]
