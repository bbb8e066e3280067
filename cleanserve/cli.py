#!/usr/bin/env python3
# cli.py - Cleanserve CLI
# ============================================================================
# FILE: cleanserve/cli.py
# Serve a directory over HTTP with graceful shutdown, inspect configs
# ============================================================================

import argparse
import json
import logging
import sys
from http.server import SimpleHTTPRequestHandler
from typing import List, Optional

from .configuration import ServeConfig, load_serve_config
from .exceptions import ConfigError
from .lifecycle import LifecycleManager
from .logging_config import configure_logging
from .monitoring import HealthCheck, LifecycleMetrics, lifecycle_check
from .services import HTTPService

logger = logging.getLogger(__name__)


def make_handler(directory: str, health: HealthCheck, metrics: LifecycleMetrics):
    """Static file handler with /healthz and /metrics endpoints."""

    class CleanserveHandler(SimpleHTTPRequestHandler):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, directory=directory, **kwargs)

        def do_GET(self):
            if self.path == "/healthz":
                result = health.check_all(force=True)
                status = 200 if result["status"] == "healthy" else 503
                self._send(status, "application/json", json.dumps(result))
            elif self.path == "/metrics":
                self._send(200, "text/plain; version=0.0.4", metrics.export_prometheus())
            else:
                super().do_GET()

        def _send(self, status: int, content_type: str, body: str):
            payload = body.encode("utf-8")
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format, *args):
            logger.info(f"{self.address_string()} - {format % args}")

    return CleanserveHandler


class CleanserveCLI:
    def __init__(self, config: ServeConfig):
        self.config = config
        self.metrics = LifecycleMetrics()
        self.health = HealthCheck()

    def build_manager(self) -> LifecycleManager:
        handler = make_handler(self.config.directory, self.health, self.metrics)
        service = HTTPService(self.config.host, self.config.port, handler_class=handler)
        manager = LifecycleManager(
            service,
            signals=self.config.signal_numbers(),
            metrics=self.metrics,
        )
        self.health.register_check("lifecycle", lifecycle_check(manager))

        manager.pre_cleanup_push(_log_phase, "readiness is failing, stopping HTTP server")
        manager.post_cleanup_push(_log_summary, manager)
        return manager

    def serve(self) -> int:
        manager = self.build_manager()
        manager.serve(self.config.timeout)
        return 0

    def check_config(self) -> int:
        print(json.dumps(self.config.to_dict(), indent=2))
        print("✅ Config OK")
        return 0


def _log_phase(message: str):
    logger.info(message)


def _log_summary(manager: LifecycleManager):
    status = manager.get_status()
    logger.info(
        f"Shut down after {status['shutdown_reason']}; "
        f"pending cleanup pre={status['pending_pre_cleanup']} post={status['pending_post_cleanup']}"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cleanserve", description="Cleanserve CLI")
    subparsers = parser.add_subparsers(dest="command", help="serve|check-config")

    serve_parser = subparsers.add_parser("serve", help="Serve a directory with graceful shutdown")
    serve_parser.add_argument("--config", "-c", help="Path to a YAML or JSON config file")
    serve_parser.add_argument("--host", help="Address to bind")
    serve_parser.add_argument("--port", "-p", type=int, help="Port to bind")
    serve_parser.add_argument("--directory", "-d", help="Directory to serve")
    serve_parser.add_argument("--timeout", "-t", type=float, help="Shutdown timeout in seconds (0 = wait forever)")
    serve_parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    serve_parser.add_argument("--json-logs", action="store_true", help="Log JSON lines")

    check_parser = subparsers.add_parser("check-config", help="Validate a config file")
    check_parser.add_argument("config", help="Path to a YAML or JSON config file")

    return parser


def resolve_config(args: argparse.Namespace) -> ServeConfig:
    """Config file and environment first, then command line flags on top."""
    config = load_serve_config(getattr(args, "config", None))

    for name in ("host", "port", "directory", "timeout", "log_level"):
        value = getattr(args, name, None)
        if value is not None:
            setattr(config, name, value)
    if getattr(args, "json_logs", False):
        config.log_json = True

    return config.validate()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in ("serve", "check-config"):
        parser.print_help()
        return 1

    try:
        config = resolve_config(args)
    except ConfigError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    cli = CleanserveCLI(config)
    if args.command == "check-config":
        return cli.check_config()

    configure_logging(config.log_level, json_format=config.log_json)
    return cli.serve()


if __name__ == "__main__":
    sys.exit(main())
