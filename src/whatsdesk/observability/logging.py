"""Structured JSON logging with request context.

One JSON object per line on stdout. Context goes in
`extra={"extra_fields": safe_log_context(...)}`; raw PII never does.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_channel_id, get_correlation_id

SERVICE_NAME = "whatsdesk"


class JsonFormatter(logging.Formatter):
    """JSON formatter that adds correlation and channel ids when bound."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_obj: dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            log_obj["correlationId"] = correlation_id

        channel_id = get_channel_id()
        if channel_id:
            log_obj["channelId"] = channel_id

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if extra_fields:
            log_obj.update(extra_fields)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


def _level_from_env() -> int:
    name = os.environ.get("WHATSDESK_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise RuntimeError(f"WHATSDESK_LOG_LEVEL is not a logging level: {name}")
    return level


def get_logger(name: str) -> logging.Logger:
    """Get a logger configured for JSON output.

    Level comes from WHATSDESK_LOG_LEVEL (default INFO). The parsing
    pipeline logs dropped records at DEBUG.
    """
    logger = logging.getLogger(name)

    # Only configure if no handlers (avoid duplicate handlers)
    if not logger.handlers:
        level = _level_from_env()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(level)
        logger.propagate = False

    return logger
