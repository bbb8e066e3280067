# metrics.py - Prometheus-Compatible Lifecycle Metrics
# ============================================================================
# FILE: cleanserve/monitoring/metrics.py
# Counters for shutdown triggers, cleanup actions and stop failures
# ============================================================================

import time
import threading
from collections import defaultdict
from typing import Any, Dict


class LifecycleMetrics:
    """
    Lightweight Prometheus-compatible metrics collector.
    Thread-safe: request handlers and the shutdown sequence both record.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters = defaultdict(int)
        self._gauges = defaultdict(float)
        self._summaries = defaultdict(list)
        self._start_time = time.time()

    def counter_inc(self, name: str, labels: Dict[str, str] = None, value: int = 1):
        """Increment a counter."""
        key = self._make_key(name, labels)
        with self._lock:
            self._counters[key] += value

    def gauge_set(self, name: str, labels: Dict[str, str] = None, value: float = 0):
        """Set a gauge value."""
        key = self._make_key(name, labels)
        with self._lock:
            self._gauges[key] = value

    def summary_observe(self, name: str, labels: Dict[str, str] = None, value: float = 0):
        """Record an observation."""
        key = self._make_key(name, labels)
        with self._lock:
            self._summaries[key].append(value)

    def counter_value(self, name: str, labels: Dict[str, str] = None) -> int:
        key = self._make_key(name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    # Lifecycle events

    def record_trigger(self, source: str):
        self.counter_inc("cleanserve_shutdown_triggers_total", {"source": source})

    def record_cleanup(self, phase: str, ok: bool):
        outcome = "ok" if ok else "error"
        self.counter_inc("cleanserve_cleanup_actions_total", {"phase": phase, "outcome": outcome})

    def record_rejected(self, operation: str):
        self.counter_inc("cleanserve_rejected_registrations_total", {"operation": operation})

    def record_stop_failure(self):
        self.counter_inc("cleanserve_stop_failures_total")

    def record_shutdown_duration(self, seconds: float):
        self.summary_observe("cleanserve_shutdown_duration_seconds", value=seconds)

    def set_pending(self, phase: str, count: int):
        self.gauge_set("cleanserve_pending_cleanup_actions", {"phase": phase}, count)

    def _make_key(self, name: str, labels: Dict[str, str] = None) -> str:
        if not labels:
            return name
        label_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels.items())])
        return f"{name}{{{label_str}}}"

    def export_prometheus(self) -> str:
        """Export metrics in Prometheus text format."""
        lines = []
        typed = set()

        def type_line(key: str, kind: str):
            base = key.split("{")[0]
            if base not in typed:
                typed.add(base)
                lines.append(f"# TYPE {base} {kind}")

        with self._lock:
            for key, value in sorted(self._counters.items()):
                type_line(key, "counter")
                lines.append(f"{key} {value}")

            for key, value in sorted(self._gauges.items()):
                type_line(key, "gauge")
                lines.append(f"{key} {value}")

            for key, values in sorted(self._summaries.items()):
                if values:
                    type_line(key, "summary")
                    lines.append(f"{key}_sum {sum(values)}")
                    lines.append(f"{key}_count {len(values)}")

        return "\n".join(lines) + "\n"

    def get_stats(self) -> Dict[str, Any]:
        """Get stats as a dict (for internal use)."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "uptime_seconds": time.time() - self._start_time
            }
