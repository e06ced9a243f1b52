"""Redaction helpers for safe logging. All external data must pass through these.

Phones, WhatsApp JIDs, contact names, message bodies and media payloads
are PII in this service.
"""

import re
from typing import Any

# Applied in order: data URLs first so their base64 is not half-matched
_DATA_URL_PATTERN = re.compile(r"data:[^;,\s]+;base64,[A-Za-z0-9+/=]+")
_JID_PATTERN = re.compile(r"[\w.:-]+@(?:s\.whatsapp\.net|c\.us|g\.us|lid)\b")
_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_PATTERNS = (_DATA_URL_PATTERN, _JID_PATTERN, _PHONE_PATTERN, _EMAIL_PATTERN)

_REDACTED = "[REDACTED]"


def redact_string(value: str) -> str:
    """Redact PII patterns from a string."""
    for pattern in _PATTERNS:
        value = pattern.sub(_REDACTED, value)
    return value


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, (bytes, bytearray)):
        return f"bytes(len={len(value)})"
    if isinstance(value, dict):
        # Keys only, never values
        return f"dict(keys={sorted(str(k) for k in value)})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def phone_suffix(phone: str) -> str:
    """Last 4 digits of a phone, safe to log for correlation."""
    return f"***{phone[-4:]}" if len(phone) > 4 else "***"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
