"""Message format detection.

Channels have stored message bodies in several conventions over time.
The shapes overlap, so the checks in `detect` run in a fixed priority
order and the first match wins.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

logger = get_logger(__name__)

_LANGCHAIN_KEYS = ("additional_kwargs", "response_metadata", "tool_calls")


class MessageFormat(str, Enum):
    """Closed set of stored message encodings."""

    LANGCHAIN_OBJECT = "LANGCHAIN_OBJECT"
    LANGCHAIN_STRING = "LANGCHAIN_STRING"
    LEGACY_N8N = "LEGACY_N8N"
    SIMPLE_JSON = "SIMPLE_JSON"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class FormatDetection:
    """Result of `detect`.

    `data` is the decoded object, or the literal text when the input was
    a non-JSON string.
    """

    format: MessageFormat
    confidence: float
    data: Any


def detect(raw: str | dict[str, Any] | None) -> FormatDetection:
    """Classify a stored message body.

    Order:
        1. Non-JSON string -> SIMPLE_JSON (literal text, confidence 0.5)
        2. LangChain metadata keys -> LANGCHAIN_OBJECT
        3. type + content -> SIMPLE_JSON (must precede the legacy check)
        4. message without type/content/additional_kwargs -> LEGACY_N8N
        5. anything else -> UNKNOWN
    """
    if not raw:
        return FormatDetection(MessageFormat.UNKNOWN, 0.0, raw)

    data: Any = raw
    if isinstance(raw, str):
        try:
            data = json.loads(raw)
        except ValueError:
            return FormatDetection(MessageFormat.SIMPLE_JSON, 0.5, raw)
        if isinstance(data, str):
            # A JSON string literal carries its text without the quotes
            return FormatDetection(MessageFormat.SIMPLE_JSON, 0.5, data)
        if not isinstance(data, dict):
            # "42", "[1, 2]" and friends are text that happens to be JSON
            return FormatDetection(MessageFormat.SIMPLE_JSON, 0.5, raw)

    if not isinstance(data, dict):
        return FormatDetection(MessageFormat.UNKNOWN, 0.0, data)

    if any(key in data for key in _LANGCHAIN_KEYS):
        return FormatDetection(MessageFormat.LANGCHAIN_OBJECT, 0.9, data)

    if data.get("type") and "content" in data:
        return FormatDetection(MessageFormat.SIMPLE_JSON, 0.9, data)

    if (
        "message" in data
        and not data.get("type")
        and not data.get("content")
        and "additional_kwargs" not in data
    ):
        return FormatDetection(MessageFormat.LEGACY_N8N, 0.8, data)

    logger.debug(
        "unknown message format",
        extra={"extra_fields": safe_log_context(data=data)},
    )
    return FormatDetection(MessageFormat.UNKNOWN, 0.0, data)
