"""Channel registry.

A channel is one upstream WhatsApp line (one store), backed by its own
table. Built-in channels can be overridden or extended with the
WHATSDESK_CHANNELS_JSON environment variable, a JSON list of objects:

    [{"id": "canarana", "table": "canarana_conversas",
      "display_name": "Canarana", "agent_tags": ["Canarana-ai"],
      "instance_name": "canarana"}]
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, field
from typing import Any

# Sender-role tags that mark a row as written by our side
DEFAULT_AGENT_TAGS: frozenset[str] = frozenset({"USUARIO_INTERNO", "Yelena-ai", "Andressa-ai"})

EXTERNAL_CONTACT_TAG = "CONTATO_EXTERNO"

AGENT_DISPLAY_NAME = "Atendente"

_TABLE_NAME = re.compile(r"[a-z_][a-z0-9_]*")


@dataclass(frozen=True)
class Channel:
    """One upstream message source."""

    id: str
    table: str
    display_name: str
    agent_tags: frozenset[str] = field(default_factory=lambda: DEFAULT_AGENT_TAGS)
    instance_name: str | None = None

    def is_agent(self, sender_role_hint: str | None) -> bool:
        return sender_role_hint is not None and sender_role_hint in self.agent_tags


_BUILTIN_CHANNELS: tuple[Channel, ...] = (
    Channel("chat", "yelena_ai_conversas", "Yelena-AI", instance_name="yelena"),
    Channel("canarana", "canarana_conversas", "Canarana", instance_name="canarana"),
    Channel("souto-soares", "souto_soares_conversas", "Souto Soares", instance_name="souto-soares"),
    Channel("joao-dourado", "joao_dourado_conversas", "João Dourado", instance_name="joao-dourado"),
    Channel(
        "america-dourada",
        "america_dourada_conversas",
        "América Dourada",
        instance_name="america-dourada",
    ),
    Channel("gerente-lojas", "gerente_lojas_conversas", "Gustavo", instance_name="gerente-lojas"),
    Channel("gerente-externo", "gerente_externo_conversas", "Andressa", instance_name="gerente-externo"),
)


def _channel_from_config(item: dict[str, Any]) -> Channel:
    """Build a Channel from one JSON config entry.

    Raises:
        ValueError: If the entry is missing fields or names an unsafe table.
    """
    try:
        channel_id = str(item["id"])
        table = str(item["table"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"channel config entry missing {e}") from e

    if not _TABLE_NAME.fullmatch(table):
        raise ValueError(f"invalid table name for channel {channel_id}")

    extra_tags = item.get("agent_tags") or []
    return Channel(
        id=channel_id,
        table=table,
        display_name=str(item.get("display_name") or channel_id),
        agent_tags=DEFAULT_AGENT_TAGS | frozenset(str(tag) for tag in extra_tags),
        instance_name=item.get("instance_name"),
    )


def _load_from_env() -> list[Channel]:
    raw = os.environ.get("WHATSDESK_CHANNELS_JSON", "")
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError as e:
        raise RuntimeError("WHATSDESK_CHANNELS_JSON is not valid JSON") from e
    if not isinstance(items, list):
        raise RuntimeError("WHATSDESK_CHANNELS_JSON must be a JSON list")
    try:
        return [_channel_from_config(item) for item in items]
    except ValueError as e:
        raise RuntimeError(f"WHATSDESK_CHANNELS_JSON: {e}") from e


def get_channels() -> list[Channel]:
    """All channels: built-ins, overridden/extended by the environment."""
    channels = {channel.id: channel for channel in _BUILTIN_CHANNELS}
    for channel in _load_from_env():
        channels[channel.id] = channel
    return list(channels.values())


def get_channel(channel_id: str) -> Channel | None:
    for channel in get_channels():
        if channel.id == channel_id:
            return channel
    return None


def get_channel_by_instance(instance_name: str) -> Channel | None:
    """Find the channel bound to an Evolution instance (case-insensitive)."""
    wanted = instance_name.lower()
    for channel in get_channels():
        if channel.instance_name and channel.instance_name.lower() == wanted:
            return channel
    return None
