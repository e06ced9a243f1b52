"""Conversation list building.

Rows arrive unordered (realtime inserts, paginated reads), so the
"latest message" of a conversation is decided by timestamp, never by
arrival order.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from whatsdesk.contacts.resolver import ContactNameResolver
from whatsdesk.infra.time import utc_now_iso
from whatsdesk.messages.converter import map_message_type
from whatsdesk.messages.models import ConversationSummary, MessageGroup, RawMessageRecord, UIMessage
from whatsdesk.messages.parsers import parse_message
from whatsdesk.messages.phone import extract_phone
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context
from whatsdesk.whatsapp.media import media_placeholder

logger = get_logger(__name__)


def _display_name(phone: str, resolver: ContactNameResolver) -> str:
    # Cache lookup only; a row's own name hint must not bypass sticky names
    return resolver.get_resolved_name(phone) or f"Cliente {phone[-4:]}"


def _preview(record: RawMessageRecord) -> str:
    if record.media_payload:
        return media_placeholder(map_message_type(record.message_type))
    parsed = parse_message(record.message)
    if parsed is not None:
        return parsed.content
    if isinstance(record.message, str):
        return record.message
    return ""


def group_by_contact(
    records: Iterable[RawMessageRecord],
    channel_id: str,
    resolver: ContactNameResolver,
) -> list[ConversationSummary]:
    """Fold a batch of rows into one summary per (phone, display name).

    Rows without a session id, or whose phone extraction is empty, are
    skipped. An existing summary is only updated by a row whose timestamp
    is non-null and strictly greater than the stored one.

    Returns:
        Summaries in first-seen order. Use `sort_by_recency` for display.
    """
    conversations: dict[str, ConversationSummary] = {}

    for record in records:
        if not record.session_id:
            continue

        phone = extract_phone(record.session_id)
        if not phone:
            continue

        contact_name = _display_name(phone, resolver)
        key = f"{phone}:{contact_name}"
        timestamp = record.received_at

        existing = conversations.get(key)
        if existing is None:
            conversations[key] = ConversationSummary(
                id=key,
                contact_name=contact_name,
                contact_phone=phone,
                last_message_content=_preview(record),
                last_message_time=timestamp,
                updated_at=timestamp or utc_now_iso(),
            )
            continue

        if timestamp and (
            existing.last_message_time is None or timestamp > existing.last_message_time
        ):
            conversations[key] = replace(
                existing,
                last_message_content=_preview(record),
                last_message_time=timestamp,
                updated_at=timestamp,
            )

    logger.info(
        "conversations grouped",
        extra={
            "extra_fields": safe_log_context(
                channel_id=channel_id,
                conversations=len(conversations),
            )
        },
    )
    return list(conversations.values())


def sort_by_recency(summaries: Iterable[ConversationSummary]) -> list[ConversationSummary]:
    """Newest first; conversations without a timestamp go last."""
    summaries = list(summaries)
    dated = [s for s in summaries if s.last_message_time]
    undated = [s for s in summaries if not s.last_message_time]
    dated.sort(key=lambda s: s.last_message_time, reverse=True)
    return dated + undated


def group_consecutive_messages(messages: Iterable[UIMessage]) -> list[MessageGroup]:
    """Split a thread into runs of messages from the same sender.

    A new group starts whenever the sender side or the sender's display
    name changes.
    """
    groups: list[MessageGroup] = []
    current: MessageGroup | None = None

    for message in messages:
        if (
            current is None
            or current.sender != message.sender
            or current.sender_name != message.contact_name
        ):
            current = MessageGroup(
                id=f"group-{message.id}",
                sender=message.sender,
                sender_name=message.contact_name,
                is_from_contact=not message.is_agent,
                last_timestamp=message.timestamp,
            )
            groups.append(current)

        current.messages.append(message)
        current.last_timestamp = message.timestamp

    return groups
