"""Media helpers for the webhook boundary.

Inbound media is stored inline as a self-describing data URL
("data:<mime>;base64,<payload>"). Downloads are bounded by a timeout and
never raise: on failure callers store a textual placeholder instead.

Security: NEVER log media URLs or payloads. Only log hashes and sizes.
"""

from __future__ import annotations

import base64
import hashlib
import os
from typing import Any

import requests

from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

logger = get_logger(__name__)

# Timeout for media downloads (seconds)
DEFAULT_MEDIA_TIMEOUT = 10.0

DEFAULT_MIME_TYPE = "application/octet-stream"

MEDIA_KINDS = ("image", "audio", "video", "document", "sticker")

_PLACEHOLDERS: dict[str, str] = {
    "image": "[Imagem]",
    "video": "[Vídeo]",
    "document": "[Documento]",
    "audio": "[Áudio]",
    "sticker": "[Figurinha]",
}
_UNSUPPORTED_PLACEHOLDER = "[Mensagem não suportada]"

# Kinds whose caption, when present, replaces the placeholder
_CAPTIONED_KINDS = frozenset({"image", "video", "document"})

_MIME_BY_KIND: dict[str, str] = {
    "image": "image/jpeg",
    "audio": "audio/mpeg",
    "video": "video/mp4",
    "document": "application/pdf",
    "sticker": "image/webp",
    "text": "text/plain",
}

# Leading base64 characters of well-known file signatures
_BASE64_SIGNATURES: tuple[tuple[str, str], ...] = (
    ("iVBORw", "image/png"),
    ("/9j/", "image/jpeg"),
    ("R0lGO", "image/gif"),
    ("UklGR", "image/webp"),
    ("JVBERi", "application/pdf"),
    ("SUQz", "audio/mpeg"),
    ("//uQ", "audio/mpeg"),
    ("//sw", "audio/mpeg"),
    ("T2dn", "audio/ogg"),
    ("AAAAGG", "video/mp4"),
    ("AAAAFG", "video/mp4"),
    ("AAAAHG", "video/mp4"),
)


def _media_timeout() -> float:
    raw = os.environ.get("WHATSDESK_MEDIA_TIMEOUT", "")
    if not raw:
        return DEFAULT_MEDIA_TIMEOUT
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError("WHATSDESK_MEDIA_TIMEOUT must be a number of seconds") from e


def _hash_identifier(value: str) -> str:
    """Create non-reversible hash for logging. Returns first 12 chars of sha256."""
    return hashlib.sha256(value.encode()).hexdigest()[:12]


def get_media_type(message: dict[str, Any]) -> str:
    """Media kind of an Evolution `message` object, or "text"."""
    for kind in MEDIA_KINDS:
        if message.get(f"{kind}Message"):
            return kind
    return "text"


def get_media_url(message: dict[str, Any]) -> str | None:
    """Download URL of the media part of an Evolution `message` object."""
    for kind in MEDIA_KINDS:
        part = message.get(f"{kind}Message")
        if isinstance(part, dict) and part.get("url"):
            return part["url"]
    return None


def get_media_caption(message: dict[str, Any], kind: str) -> str | None:
    part = message.get(f"{kind}Message")
    if isinstance(part, dict) and part.get("caption"):
        return str(part["caption"])
    return None


def media_placeholder(kind: str, caption: str | None = None) -> str:
    """Text stored in place of media that could not be downloaded."""
    if caption and kind in _CAPTIONED_KINDS:
        return caption
    return _PLACEHOLDERS.get(kind, _UNSUPPORTED_PLACEHOLDER)


def infer_mime_type(kind: str | None) -> str:
    """Default MIME type for a media kind."""
    return _MIME_BY_KIND.get((kind or "").lower(), DEFAULT_MIME_TYPE)


def is_data_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("data:") and ";base64," in value


def detect_mime_from_base64(payload: str) -> str:
    """Guess a MIME type from the first characters of a base64 payload."""
    for prefix, mime in _BASE64_SIGNATURES:
        if payload.startswith(prefix):
            return mime
    return DEFAULT_MIME_TYPE


def to_data_url(content: bytes, content_type: str | None) -> str:
    """Wrap raw bytes as a data URL, sniffing the type when it is unhelpful."""
    payload = base64.b64encode(content).decode("ascii")
    mime = (content_type or "").split(";", 1)[0].strip()
    if not mime or mime == DEFAULT_MIME_TYPE:
        mime = detect_mime_from_base64(payload)
    return f"data:{mime};base64,{payload}"


def download_media_as_base64(url: str, timeout: float | None = None) -> str | None:
    """Fetch a media URL and return it as a data URL.

    Args:
        url: Media URL. NEVER logged.
        timeout: Seconds before giving up (default WHATSDESK_MEDIA_TIMEOUT or 10).

    Returns:
        "data:<content-type>;base64,<payload>", or None on any HTTP or
        network failure.
    """
    log_ctx = safe_log_context(url_hash=_hash_identifier(url))

    try:
        resp = requests.get(url, timeout=timeout if timeout is not None else _media_timeout())
        resp.raise_for_status()
    except requests.RequestException as e:
        logger.warning(
            "media download failed",
            extra={"extra_fields": safe_log_context(**log_ctx, error_type=type(e).__name__)},
        )
        return None

    data_url = to_data_url(resp.content, resp.headers.get("Content-Type"))
    logger.info(
        "media downloaded",
        extra={"extra_fields": safe_log_context(**log_ctx, size=len(resp.content))},
    )
    return data_url
