"""Channel conversation list and thread endpoints for the dashboard."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from whatsdesk.channels import Channel, get_channel, get_channels
from whatsdesk.contacts.resolver import ContactNameResolver
from whatsdesk.conversations.grouper import (
    group_by_contact,
    group_consecutive_messages,
    sort_by_recency,
)
from whatsdesk.messages.converter import convert_rows, is_agent_row
from whatsdesk.messages.models import RawMessageRecord
from whatsdesk.messages.phone import extract_phone
from whatsdesk.observability.correlation import bind_channel
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

from ..deps import get_resolver

router = APIRouter(prefix="/channels", tags=["channels"])

logger = get_logger(__name__)


def _load_channel_rows(table: str, limit: int) -> list[RawMessageRecord]:
    """Read the latest rows of a channel table."""
    from whatsdesk.infra.db import txn
    from whatsdesk.infra.repositories.messages_repository import fetch_channel_rows

    with txn() as cur:
        return fetch_channel_rows(cur, table, limit)


def _load_contact_rows(table: str, phone: str, limit: int) -> list[RawMessageRecord]:
    """Read one contact's thread from a channel table."""
    from whatsdesk.infra.db import txn
    from whatsdesk.infra.repositories.messages_repository import fetch_contact_rows

    with txn() as cur:
        return fetch_contact_rows(cur, table, phone, limit)


def _require_channel(channel_id: str) -> Channel:
    channel = get_channel(channel_id)
    if channel is None:
        raise HTTPException(status_code=404, detail="Channel not found")
    return channel


def _warm_names(records: list[RawMessageRecord], channel: Channel, resolver: ContactNameResolver) -> None:
    """Resolve names carried by customer rows so grouping sees sticky names.

    Grouping itself only reads the cache; this is the step that feeds it.
    Rows arrive newest first, so they are walked oldest first to let the
    earliest name hint stick.
    """
    for record in reversed(records):
        if record.session_id and record.display_name_hint and not is_agent_row(record, channel):
            resolver.resolve(
                extract_phone(record.session_id),
                record.session_id,
                record.display_name_hint,
                record.received_at,
            )


@router.get("")
def list_channels() -> dict:
    """List configured channels."""
    return {
        "channels": [
            {"id": channel.id, "display_name": channel.display_name}
            for channel in get_channels()
        ]
    }


@router.get("/{channel_id}/conversations")
def list_conversations(
    channel_id: str = Path(..., description="Channel id"),
    limit: int = Query(1000, ge=1, le=5000),
    resolver: ContactNameResolver = Depends(get_resolver),
) -> dict:
    """Conversation list for a channel, most recent first."""
    channel = _require_channel(channel_id)
    with bind_channel(channel.id):
        records = _load_channel_rows(channel.table, limit)
        _warm_names(records, channel, resolver)

        summaries = sort_by_recency(group_by_contact(records, channel.id, resolver))

        logger.info(
            "conversation list served",
            extra={"extra_fields": safe_log_context(rows=len(records), conversations=len(summaries))},
        )
    return {"conversations": [asdict(summary) for summary in summaries]}


@router.get("/{channel_id}/conversations/{phone}/messages")
def list_messages(
    channel_id: str = Path(..., description="Channel id"),
    phone: str = Path(..., description="Contact phone or session key"),
    limit: int = Query(500, ge=1, le=5000),
    grouped: bool = Query(False, description="Group consecutive messages by sender"),
    resolver: ContactNameResolver = Depends(get_resolver),
) -> dict:
    """Messages of one conversation thread, oldest first."""
    channel = _require_channel(channel_id)
    with bind_channel(channel.id):
        records = _load_contact_rows(channel.table, phone, limit)
        messages = convert_rows(records, resolver, channel)

        logger.info(
            "conversation thread served",
            extra={"extra_fields": safe_log_context(rows=len(records), messages=len(messages))},
        )

    if grouped:
        return {"groups": [asdict(group) for group in group_consecutive_messages(messages)]}
    return {"messages": [asdict(message) for message in messages]}
