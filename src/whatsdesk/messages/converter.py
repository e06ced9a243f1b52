"""Raw channel rows -> UI message records."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import replace

from whatsdesk.channels import AGENT_DISPLAY_NAME, DEFAULT_AGENT_TAGS, Channel
from whatsdesk.contacts.resolver import ContactNameResolver
from whatsdesk.infra.time import utc_now_iso
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

from .models import ParsedMessage, RawMessageRecord, UIMessage
from .parsers import parse_message
from .phone import extract_phone

logger = get_logger(__name__)

# Per-source `mensagemtype` values -> UI media kind
_MESSAGE_TYPE_MAP: dict[str, str] = {
    "text": "text",
    "texto": "text",
    "conversation": "text",
    "extendedtextmessage": "text",
    "image": "image",
    "imagem": "image",
    "photo": "image",
    "imagemessage": "image",
    "mensagem_de_imagem": "image",
    "audio": "audio",
    "voice": "audio",
    "ptt": "audio",
    "audiomessage": "audio",
    "mensagem_de_audio": "audio",
    "video": "video",
    "videomessage": "video",
    "mensagem_de_video": "video",
    "document": "document",
    "documento": "document",
    "file": "document",
    "documentmessage": "document",
    "sticker": "sticker",
    "stickermessage": "sticker",
}


def map_message_type(raw_type: str | None) -> str:
    """Normalize a source's message-type column. Unknown values read as text."""
    if not raw_type:
        return "text"
    return _MESSAGE_TYPE_MAP.get(raw_type.strip().lower(), "text")


def _is_agent(record: RawMessageRecord, channel: Channel | None) -> bool:
    if channel is not None:
        return channel.is_agent(record.sender_role_hint)
    return record.sender_role_hint in DEFAULT_AGENT_TAGS


def _message_text(message: object) -> str:
    if message is None:
        return ""
    if isinstance(message, str):
        return message
    return json.dumps(message, ensure_ascii=False)


def raw_to_message(
    record: RawMessageRecord,
    resolver: ContactNameResolver,
    channel: Channel | None = None,
    is_agent: bool | None = None,
) -> UIMessage:
    """Assemble one UI message from a raw row.

    Content is the media payload when present, else the stored message
    as-is. `is_agent` overrides the side taken from the row and channel.
    Errors from phone extraction or name resolution propagate.
    """
    phone = extract_phone(record.session_id)
    if is_agent is None:
        is_agent = _is_agent(record, channel)

    if is_agent:
        contact_name = AGENT_DISPLAY_NAME
    else:
        contact_name = resolver.resolve(
            phone,
            record.session_id,
            record.display_name_hint,
            record.received_at,
        )

    return UIMessage(
        id=str(record.id),
        content=record.media_payload or _message_text(record.message),
        timestamp=record.received_at or utc_now_iso(),
        sender="agent" if is_agent else "customer",
        is_agent=is_agent,
        contact_name=contact_name,
        contact_phone=phone,
        session_id=record.session_id,
        sender_role_hint=record.sender_role_hint,
        message_type=map_message_type(record.message_type),
        role="ai" if is_agent else "human",
    )


def _classify(record: RawMessageRecord, parsed: ParsedMessage | None, channel: Channel | None) -> bool:
    """Rows without a sender-role hint take their side from the parsed role."""
    if _is_agent(record, channel):
        return True
    return record.sender_role_hint is None and parsed is not None and parsed.role == "ai"


def is_agent_row(record: RawMessageRecord, channel: Channel | None = None) -> bool:
    """Side of a row as convert_rows decides it, for callers that only need names."""
    parsed = None
    if not record.media_payload and record.sender_role_hint is None:
        parsed = parse_message(record.message)
    return _classify(record, parsed, channel)


def _with_parsed(message: UIMessage, parsed: ParsedMessage) -> UIMessage:
    """Swap the stored body for parsed text."""
    role = "ai" if message.is_agent else parsed.role
    return replace(message, content=parsed.content, role=role)


def convert_rows(
    records: Iterable[RawMessageRecord],
    resolver: ContactNameResolver,
    channel: Channel | None = None,
) -> list[UIMessage]:
    """Convert the rows of one open conversation thread.

    Text rows whose body yields no content are dropped. Parsed text
    replaces the stored body and supplies the role; media rows are kept
    as-is. Rows are de-duplicated by id and returned oldest first.
    """
    messages: list[UIMessage] = []
    seen: set[str] = set()
    dropped = 0

    for record in records:
        if str(record.id) in seen:
            continue

        parsed = None
        if not record.media_payload:
            parsed = parse_message(record.message)
            if parsed is None:
                dropped += 1
                continue

        # Side is settled before resolving so agent names never reach the cache
        is_agent = _classify(record, parsed, channel)
        message = raw_to_message(record, resolver, channel, is_agent=is_agent)
        if parsed is not None:
            message = _with_parsed(message, parsed)

        seen.add(message.id)
        messages.append(message)

    if dropped:
        logger.debug(
            "dropped unparseable messages",
            extra={"extra_fields": safe_log_context(dropped=dropped)},
        )

    messages.sort(key=lambda m: m.timestamp)
    return messages
