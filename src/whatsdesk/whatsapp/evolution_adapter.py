"""Evolution API adapter - validate and normalize webhook payloads."""

from datetime import datetime, timezone
from typing import Any

from .media import get_media_caption, get_media_type, get_media_url
from .models import NormalizedInbound

# Event names Evolution uses for new messages, across versions
MESSAGE_UPSERT_EVENTS = frozenset({"messages.upsert", "messages_upsert", "messagesupsert"})


class InvalidPayloadError(Exception):
    """Raised when Evolution payload has invalid shape."""

    pass


def is_message_event(payload: dict[str, Any]) -> bool:
    """True if the webhook event carries a new message."""
    event = payload.get("event")
    return isinstance(event, str) and event.lower() in MESSAGE_UPSERT_EVENTS


def _extract_text(message: dict[str, Any]) -> str | None:
    if message.get("conversation"):
        return message["conversation"]
    extended = message.get("extendedTextMessage")
    if isinstance(extended, dict) and extended.get("text"):
        return extended["text"]
    return None


def normalize(payload: dict[str, Any]) -> NormalizedInbound:
    """Normalize an Evolution messages.upsert payload.

    Args:
        payload: Raw webhook payload from Evolution API.

    Returns:
        NormalizedInbound with contact, text and media fields (PII).

    Raises:
        InvalidPayloadError: If required fields are missing or invalid.
    """
    instance = payload.get("instance")
    if not instance or not isinstance(instance, str):
        raise InvalidPayloadError("missing instance")

    data = payload.get("data")
    if not isinstance(data, dict):
        raise InvalidPayloadError("missing data")
    key = data.get("key") or {}

    message_id = key.get("id")
    if not message_id or not isinstance(message_id, str):
        raise InvalidPayloadError("missing or invalid message_id")

    remote_jid = key.get("remoteJid", "")
    if not remote_jid:
        raise InvalidPayloadError("missing remoteJid")

    message = data.get("message") or {}
    if not isinstance(message, dict):
        raise InvalidPayloadError("invalid message")

    kind = get_media_type(message)

    return NormalizedInbound(
        message_id=message_id,
        instance=instance,
        received_at=datetime.now(timezone.utc),
        kind=kind,
        remote_jid=remote_jid,
        from_me=bool(key.get("fromMe", False)),
        push_name=data.get("pushName") or None,
        text=_extract_text(message),
        media_url=get_media_url(message),
        caption=get_media_caption(message, kind) if kind != "text" else None,
    )
