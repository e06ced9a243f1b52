"""Build channel table rows from normalized Evolution messages.

The row shape written here is what the read pipeline consumes: text in
`message`, or a placeholder/caption in `message` plus a data URL in
`media_base64` for media.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from whatsdesk.channels import EXTERNAL_CONTACT_TAG
from whatsdesk.infra.time import to_iso
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

from .media import detect_mime_from_base64, download_media_as_base64, is_data_url, media_placeholder
from .models import NormalizedInbound

logger = get_logger(__name__)

# Tag stored for messages sent from the channel's own number
INTERNAL_USER_TAG = "USUARIO_INTERNO"

_RAW_BASE64 = re.compile(r"\s*[A-Za-z0-9+/]{100,}={0,2}\s*")

MediaDownloader = Callable[[str], str | None]


def resolve_media(media_url: str, download: MediaDownloader | None = None) -> str | None:
    """Turn an inbound media reference into a data URL.

    Accepts data URLs as-is, wraps bare base64 and downloads anything
    else. Returns None when the download fails.
    """
    if is_data_url(media_url):
        return media_url
    if _RAW_BASE64.fullmatch(media_url):
        payload = media_url.strip()
        return f"data:{detect_mime_from_base64(payload)};base64,{payload}"
    return (download or download_media_as_base64)(media_url)


def build_row(
    inbound: NormalizedInbound,
    download: MediaDownloader | None = None,
) -> dict[str, Any]:
    """Row to insert into the channel table for one inbound message.

    Media download failures degrade to a textual placeholder; they never
    raise.
    """
    row: dict[str, Any] = {
        "session_id": inbound.remote_jid,
        "message": inbound.text or "",
        "read_at": to_iso(inbound.received_at),
        "mensagemtype": inbound.kind,
        "tipo_remetente": INTERNAL_USER_TAG if inbound.from_me else EXTERNAL_CONTACT_TAG,
        "nome_do_contato": None if inbound.from_me else inbound.push_name,
    }

    if inbound.kind == "text":
        return row

    row["message"] = media_placeholder(inbound.kind, inbound.caption)
    data_url = resolve_media(inbound.media_url, download) if inbound.media_url else None
    if data_url is not None:
        row["media_base64"] = data_url
    else:
        logger.warning(
            "media unavailable, storing placeholder",
            extra={"extra_fields": safe_log_context(kind=inbound.kind)},
        )
    return row
