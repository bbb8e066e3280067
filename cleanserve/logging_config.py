# logging_config.py - CLI Logging Setup
# ============================================================================
# FILE: cleanserve/logging_config.py
# Root logger setup for the cleanserve command: plain text or JSON lines
# ============================================================================

import json
import logging
import sys
from typing import Any, Optional

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """One JSON object per record; the thread matters when reading a shutdown."""

    def format(self, record: logging.LogRecord) -> str:
        out = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            out["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(out)


_configured = False


def configure_logging(
    level: Optional[str] = None,
    json_format: bool = False,
    stream: Any = sys.stderr,
) -> None:
    """Configure the root logger. Idempotent."""
    global _configured
    if _configured:
        return
    _configured = True

    numeric = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric)

    handler = logging.StreamHandler(stream)
    handler.setLevel(numeric)
    handler.setFormatter(JsonFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
