"""Shared test helper functions for whatsdesk tests.

These are NOT fixtures - they are regular functions.
"""

from __future__ import annotations

import json
from typing import Any

from whatsdesk.messages.models import RawMessageRecord


def make_record(
    id: int | str = 1,
    session_id: str = "5511999998888@s.whatsapp.net",
    message: Any = "oi",
    sender_role_hint: str | None = "CONTATO_EXTERNO",
    display_name_hint: str | None = None,
    received_at: str | None = "2024-01-01T10:00:00.000Z",
    media_payload: str | None = None,
    message_type: str | None = None,
) -> RawMessageRecord:
    """Build a RawMessageRecord with sensible defaults."""
    return RawMessageRecord(
        id=id,
        session_id=session_id,
        message=message,
        sender_role_hint=sender_role_hint,
        display_name_hint=display_name_hint,
        received_at=received_at,
        media_payload=media_payload,
        message_type=message_type,
    )


def simple_json(content: str, type_: str = "human", **extra: Any) -> str:
    """JSON-encoded {type, content} message body."""
    return json.dumps({"type": type_, "content": content, **extra})


def evolution_payload(
    message: dict[str, Any] | None = None,
    *,
    instance: str = "canarana",
    event: str = "messages.upsert",
    remote_jid: str = "5511999998888@s.whatsapp.net",
    message_id: str = "MSG123456789",
    from_me: bool = False,
    push_name: str | None = "Maria",
) -> dict[str, Any]:
    """Evolution messages.upsert webhook payload."""
    data: dict[str, Any] = {
        "key": {"id": message_id, "remoteJid": remote_jid, "fromMe": from_me},
        "message": message if message is not None else {"conversation": "Olá, tudo bem?"},
    }
    if push_name is not None:
        data["pushName"] = push_name
    return {"event": event, "instance": instance, "data": data}
