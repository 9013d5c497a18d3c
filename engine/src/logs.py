"""
Structured JSON logging for hosts embedding the engine.

The engine modules only create module-level loggers; installing handlers is
left to the host. configure_logging() is the default setup: one JSON line
per record on stderr.

CHANGELOG:
- 2026-10-18: Take the log level from EngineSettings (STORY-010)
- 2026-10-13: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from engine.src.config import EngineSettings


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(settings: EngineSettings | None = None) -> None:
    """Send root logger output to stderr as JSON lines.

    Args:
        settings: Engine settings providing ``log_level``; loaded from the
            environment when omitted.
    """
    level = (settings or EngineSettings()).log_level
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
