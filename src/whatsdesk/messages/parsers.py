"""Parsers turning each detected message format into a ParsedMessage.

Every parser returns None when the record has no usable text after
cleaning. Callers drop such records instead of rendering empty bubbles.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

from whatsdesk.infra.time import utc_now_iso
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

from .formats import MessageFormat, detect
from .models import ParsedMessage

logger = get_logger(__name__)

_NEWLINE_RUNS = re.compile(r"\n+")
_EDGE_NEWLINES = re.compile(r"^\n+|\n+$")
_BLANK_RUNS = re.compile(r"[ \t]+")

_AI_TYPES = frozenset({"ai", "assistant"})


def clean_content(raw: str) -> str:
    """Normalize whitespace in message text.

    Trims, collapses newline runs, strips edge newlines and collapses
    runs of spaces/tabs. Returns "" when nothing is left.
    """
    if not raw:
        return ""
    cleaned = raw.strip()
    cleaned = _NEWLINE_RUNS.sub("\n", cleaned)
    cleaned = _EDGE_NEWLINES.sub("", cleaned)
    return _BLANK_RUNS.sub(" ", cleaned)


def _as_text(value: Any) -> str:
    """Stringify a content field. LangChain content may be a list of parts."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        parts = []
        for part in value:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "\n".join(parts)
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _build(raw_content: Any, role: str, timestamp: str | None = None) -> ParsedMessage | None:
    content = clean_content(_as_text(raw_content))
    if not content:
        return None
    return ParsedMessage(content=content, timestamp=timestamp or utc_now_iso(), role=role)


def _tool_call_message(data: dict[str, Any]) -> Any:
    """`message` argument of the first tool call, if there is one."""
    tool_calls = data.get("tool_calls")
    if not isinstance(tool_calls, list) or not tool_calls:
        return None
    first = tool_calls[0]
    function = first.get("function") if isinstance(first, dict) else None
    if not isinstance(function, dict) or not function.get("arguments"):
        return None

    arguments = function["arguments"]
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except ValueError:
            logger.debug("malformed tool call arguments")
            return None
    if not isinstance(arguments, dict):
        return None
    return arguments.get("message")


def parse_langchain(data: dict[str, Any]) -> ParsedMessage | None:
    """Parse LangChain-style objects (tool-call payload first, then content)."""
    tool_message = _tool_call_message(data)
    if tool_message:
        parsed = _build(tool_message, "ai")
        if parsed is not None:
            return parsed

    if "content" in data:
        return _build(data["content"], "ai" if data.get("type") == "ai" else "human")
    return None


def parse_legacy_n8n(data: dict[str, Any]) -> ParsedMessage | None:
    """Parse legacy `{"message": ...}` records. Always from the contact."""
    if "message" not in data:
        return None
    return _build(data["message"], "human")


def parse_simple_json(data: dict[str, Any] | str) -> ParsedMessage | None:
    """Parse `{"type", "content"}` records, or a literal text body."""
    if isinstance(data, str):
        return _build(data, "human")
    if "content" not in data:
        return None
    role = "ai" if data.get("type") in _AI_TYPES else "human"
    timestamp = data.get("timestamp")
    return _build(data["content"], role, str(timestamp) if timestamp else None)


def _parse_unknown(data: Any) -> ParsedMessage | None:
    return None


_PARSERS: dict[MessageFormat, Callable[[Any], ParsedMessage | None]] = {
    MessageFormat.LANGCHAIN_OBJECT: parse_langchain,
    MessageFormat.LANGCHAIN_STRING: parse_langchain,
    MessageFormat.LEGACY_N8N: parse_legacy_n8n,
    MessageFormat.SIMPLE_JSON: parse_simple_json,
    MessageFormat.UNKNOWN: _parse_unknown,
}


def parse_as(message_format: MessageFormat, data: Any) -> ParsedMessage | None:
    """Parse already-decoded data with a known format."""
    return _PARSERS[message_format](data)


def parse_message(raw: str | dict[str, Any] | None) -> ParsedMessage | None:
    """Detect the format of a stored body and parse it.

    Returns:
        ParsedMessage, or None if the record should be dropped.
    """
    detection = detect(raw)
    parsed = parse_as(detection.format, detection.data)
    if parsed is None:
        logger.debug(
            "message dropped",
            extra={
                "extra_fields": safe_log_context(
                    format=detection.format.value,
                    confidence=detection.confidence,
                )
            },
        )
    return parsed
