"""WhatsApp inbound models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class NormalizedInbound:
    """Evolution message normalized for storage.

    PII: `remote_jid`, `push_name`, `text` and `media_url` are PII.
    NEVER log them.
    """

    message_id: str
    instance: str
    received_at: datetime
    kind: str  # "text", "image", "audio", "video", "document", "sticker"
    remote_jid: str
    from_me: bool
    push_name: str | None
    text: str | None
    media_url: str | None
    caption: str | None
