"""WhatsApp webhook routes - Evolution API integration.

Security:
- Contact data (remote_jid, push name, text, media) is stored in the
  channel table and NEVER logged
- Webhook secret compared in constant time, fail-closed outside local dev
"""

import hmac
import os
from typing import Any

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse
from fastapi.concurrency import run_in_threadpool

from whatsdesk.channels import get_channel_by_instance
from whatsdesk.contacts.resolver import ContactNameResolver
from whatsdesk.messages.phone import extract_phone
from whatsdesk.observability.correlation import bind_channel, get_correlation_id
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context
from whatsdesk.whatsapp.evolution_adapter import InvalidPayloadError, is_message_event, normalize
from whatsdesk.whatsapp.ingest import build_row

from ..deps import get_resolver

router = APIRouter(prefix="/webhooks/whatsapp", tags=["webhooks"])

logger = get_logger(__name__)


def _store_row(table: str, row: dict[str, Any]) -> Any:
    """Insert the message row into the channel table. Returns the row id."""
    from whatsdesk.infra.db import txn
    from whatsdesk.infra.repositories.messages_repository import insert_message_row

    with txn() as cur:
        return insert_message_row(cur, table, row)


def _secret_ok(x_webhook_secret: str | None, correlation_id: str) -> bool:
    """Validate the shared webhook secret (fail-closed)."""
    expected_secret = os.environ.get("EVOLUTION_WEBHOOK_SECRET", "")
    if not expected_secret:
        if os.environ.get("WHATSDESK_ENV", "") == "local":
            logger.warning(
                "EVOLUTION_WEBHOOK_SECRET not set - skipping validation (local dev)",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
            )
            return True
        logger.error(
            "EVOLUTION_WEBHOOK_SECRET not configured - rejecting webhook (fail-closed)",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return False

    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected_secret):
        logger.warning(
            "evolution webhook secret mismatch",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return False
    return True


@router.post("/evolution")
async def evolution_webhook(
    request: Request,
    x_webhook_secret: str | None = Header(None, alias="X-Webhook-Secret"),
    resolver: ContactNameResolver = Depends(get_resolver),
) -> Response:
    """Receive Evolution API webhook and store the message in its channel table.

    Returns:
        200 OK with the stored row id, or {"status": "ignored"} for
            non-message events.
        400 Bad Request if JSON or payload shape is invalid.
        401 Unauthorized if secret validation fails.
        404 Not Found if the instance is not bound to a channel.
        500 Internal Server Error if storing fails.
    """
    correlation_id = get_correlation_id()

    if not _secret_ok(x_webhook_secret, correlation_id):
        return Response(status_code=401, content="unauthorized")

    # 1. Parse JSON
    try:
        payload: dict[str, Any] = await request.json()
    except ValueError:
        logger.warning(
            "invalid json body",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
        )
        return Response(status_code=400, content="invalid json")

    if not isinstance(payload, dict):
        return Response(status_code=400, content="invalid payload shape")

    if not is_message_event(payload):
        return JSONResponse({"status": "ignored"})

    # 2. Normalize payload
    try:
        msg = normalize(payload)
    except InvalidPayloadError as e:
        logger.warning(
            "invalid evolution payload shape",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id, reason=str(e))},
        )
        return Response(status_code=400, content="invalid payload shape")

    # 3. Map instance -> channel
    channel = get_channel_by_instance(msg.instance)
    if channel is None:
        logger.warning(
            "evolution instance not bound to a channel",
            extra={"extra_fields": safe_log_context(correlationId=correlation_id, instance=msg.instance)},
        )
        return Response(status_code=404, content="unknown instance")

    with bind_channel(channel.id):
        # 4. Build row (downloads media off the event loop, degrades to placeholder)
        row = await run_in_threadpool(build_row, msg)

        # 5. Store
        try:
            row_id = await run_in_threadpool(_store_row, channel.table, row)
        except Exception:
            logger.exception(
                "failed to store inbound message",
                extra={"extra_fields": safe_log_context(correlationId=correlation_id)},
            )
            return Response(status_code=500, content="store failed")

        # 6. Warm the name cache with the sender's push name
        if not msg.from_me and msg.push_name:
            resolver.resolve(extract_phone(msg.remote_jid), msg.remote_jid, msg.push_name, row["read_at"])

        logger.info(
            "evolution message stored",
            extra={
                "extra_fields": safe_log_context(
                    correlationId=correlation_id,
                    message_id_prefix=msg.message_id[:8],
                    kind=msg.kind,
                    from_me=msg.from_me,
                )
            },
        )
    return JSONResponse({"status": "stored", "channel_id": channel.id, "id": row_id})
