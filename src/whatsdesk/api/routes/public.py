"""Liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from whatsdesk.channels import get_channels
from whatsdesk.observability.logging import get_logger
from whatsdesk.observability.redaction import safe_log_context

router = APIRouter()

logger = get_logger(__name__)


@router.get("/health")
def health() -> dict:
    """Liveness: the process is serving requests."""
    return {"status": "ok"}


@router.get("/health/ready")
def ready() -> JSONResponse:
    """Readiness: channel configuration loads.

    A malformed WHATSDESK_CHANNELS_JSON fails every channel request, so it
    fails readiness too.
    """
    try:
        channels = get_channels()
    except RuntimeError as e:
        logger.error("channel configuration invalid", extra={"extra_fields": safe_log_context(reason=str(e))})
        return JSONResponse({"status": "unavailable"}, status_code=503)
    return JSONResponse({"status": "ok", "channels": len(channels)})
