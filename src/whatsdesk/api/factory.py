"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response

from whatsdesk.observability.correlation import (
    CORRELATION_ID_HEADER,
    accept_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)

from .routes import channels, contacts, public, webhooks_whatsapp


def create_app() -> FastAPI:
    """Create the whatsdesk FastAPI app with all routes mounted."""
    app = FastAPI(
        title="whatsdesk",
        docs_url=None,
        redoc_url=None,
    )

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = accept_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(channels.router)
    app.include_router(contacts.router)
    app.include_router(webhooks_whatsapp.router)

    return app
