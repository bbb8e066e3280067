# tests/test_monitoring.py

from cleanserve.lifecycle import LifecycleManager
from cleanserve.monitoring import HealthCheck, LifecycleMetrics, lifecycle_check


def test_metrics_export_prometheus():
    metrics = LifecycleMetrics()
    metrics.record_trigger("SIGTERM")
    metrics.record_cleanup("pre", ok=True)
    metrics.record_cleanup("pre", ok=True)
    metrics.record_cleanup("post", ok=False)
    metrics.record_shutdown_duration(1.5)

    text = metrics.export_prometheus()

    assert "# TYPE cleanserve_cleanup_actions_total counter" in text
    assert text.count("# TYPE cleanserve_cleanup_actions_total counter") == 1
    assert 'cleanserve_cleanup_actions_total{outcome="ok",phase="pre"} 2' in text
    assert 'cleanserve_cleanup_actions_total{outcome="error",phase="post"} 1' in text
    assert 'cleanserve_shutdown_triggers_total{source="SIGTERM"} 1' in text
    assert "cleanserve_shutdown_duration_seconds_sum 1.5" in text
    assert "cleanserve_shutdown_duration_seconds_count 1" in text


def test_metrics_stats():
    metrics = LifecycleMetrics()
    metrics.set_pending("post", 3)

    stats = metrics.get_stats()

    assert stats["gauges"] == {'cleanserve_pending_cleanup_actions{phase="post"}': 3}
    assert stats["uptime_seconds"] >= 0


def test_health_check_results_and_cache():
    health = HealthCheck(cache_duration=60)
    calls = []

    def flaky():
        calls.append(1)
        return len(calls) == 1

    health.register_check("flaky", flaky)

    first = health.check_all()
    cached = health.check_all()
    forced = health.check_all(force=True)

    assert first["status"] == "healthy"
    assert cached is first
    assert forced["status"] == "unhealthy"
    assert forced["checks"]["flaky"]["status"] == "error"


def test_health_check_exception_is_unhealthy():
    health = HealthCheck()

    def broken():
        raise ConnectionError("db down")

    health.register_check("db", broken)
    result = health.check_all()

    assert result["status"] == "unhealthy"
    assert result["checks"]["db"]["message"] == "db down"


def test_lifecycle_check_fails_once_shutdown_requested():
    manager = LifecycleManager(signals=())
    check = lifecycle_check(manager)

    assert check() is True
    manager.request_shutdown()
    assert check() is False


def test_json_log_formatter():
    import json
    import logging

    from cleanserve.logging_config import JsonFormatter

    record = logging.LogRecord(
        "cleanserve.lifecycle", logging.INFO, __file__, 1, "Shutting down (%s)", ("SIGTERM",), None
    )
    record.threadName = "cleanserve-service"

    out = json.loads(JsonFormatter().format(record))

    assert out["message"] == "Shutting down (SIGTERM)"
    assert out["level"] == "INFO"
    assert out["logger"] == "cleanserve.lifecycle"
    assert out["thread"] == "cleanserve-service"
    assert "exc_info" not in out


def test_json_log_formatter_includes_traceback():
    import json
    import logging
    import sys

    from cleanserve.logging_config import JsonFormatter

    try:
        raise ValueError("cannot flush")
    except ValueError:
        exc_info = sys.exc_info()
    record = logging.LogRecord(
        "cleanserve.lifecycle", logging.ERROR, __file__, 1, "Error in pre-cleanup", (), exc_info
    )

    out = json.loads(JsonFormatter().format(record))

    assert "ValueError: cannot flush" in out["exc_info"]
