"""Message and conversation models.

Raw records come from channel tables whose columns differ per store;
everything downstream of `RawMessageRecord.from_row` uses one shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from whatsdesk.infra.time import to_iso

Role = Literal["human", "ai"]
Sender = Literal["agent", "customer"]
ConversationStatus = Literal["unread", "in_progress", "resolved"]

# Column aliases seen across channel tables, in lookup order
_DISPLAY_NAME_COLUMNS = ("Nome_do_contato", "nome_do_contato", "display_name_hint")
_RECEIVED_AT_COLUMNS = ("read_at", "received_at", "timestamp")
_ROLE_HINT_COLUMNS = ("tipo_remetente", "sender_role_hint")
_MEDIA_COLUMNS = ("media_base64", "media_payload")
_MESSAGE_TYPE_COLUMNS = ("mensagemtype", "message_type")


def _first_present(row: dict[str, Any], columns: tuple[str, ...]) -> Any:
    for column in columns:
        value = row.get(column)
        if value not in (None, ""):
            return value
    return None


def _as_iso(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_iso(value)
    return str(value)


@dataclass(frozen=True)
class RawMessageRecord:
    """One stored message row, as written by an upstream channel.

    `message` is either plain text, a JSON-encoded string or an
    already-decoded JSON object (jsonb columns).
    """

    id: int | str
    session_id: str
    message: str | dict[str, Any] | None
    sender_role_hint: str | None = None
    display_name_hint: str | None = None
    received_at: str | None = None
    media_payload: str | None = None
    message_type: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RawMessageRecord:
        """Build a record from a channel table row (any column casing)."""
        return cls(
            id=row["id"],
            session_id=row.get("session_id") or "",
            message=row.get("message"),
            sender_role_hint=_first_present(row, _ROLE_HINT_COLUMNS),
            display_name_hint=_first_present(row, _DISPLAY_NAME_COLUMNS),
            received_at=_as_iso(_first_present(row, _RECEIVED_AT_COLUMNS)),
            media_payload=_first_present(row, _MEDIA_COLUMNS),
            message_type=_first_present(row, _MESSAGE_TYPE_COLUMNS),
        )


@dataclass(frozen=True)
class ParsedMessage:
    """Canonical message body after format detection and cleaning."""

    content: str
    timestamp: str
    role: Role


@dataclass(frozen=True)
class ResolvedContact:
    """Authoritative display name for a phone."""

    phone: str
    display_name: str
    resolved_at: str


@dataclass(frozen=True)
class PendingContact:
    """A customer message seen before any name was known for its phone."""

    phone: str
    session_id: str
    timestamp: str


@dataclass(frozen=True)
class UIMessage:
    """Message record ready for an open conversation thread."""

    id: str
    content: str
    timestamp: str
    sender: Sender
    is_agent: bool
    contact_name: str
    contact_phone: str
    session_id: str
    sender_role_hint: str | None
    message_type: str
    role: Role


@dataclass(frozen=True)
class ConversationSummary:
    """One row of the conversation list."""

    id: str
    contact_name: str
    contact_phone: str
    last_message_content: str
    last_message_time: str | None
    updated_at: str
    status: ConversationStatus = "unread"
    unread_count: int = 0


@dataclass
class MessageGroup:
    """Run of consecutive messages from the same sender."""

    id: str
    sender: Sender
    sender_name: str
    is_from_contact: bool
    last_timestamp: str
    messages: list[UIMessage] = field(default_factory=list)
