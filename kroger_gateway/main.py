"""
FastAPI application entrypoint for the Kroger OAuth gateway.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from kroger_gateway.api.auth_routes import router as auth_router
from kroger_gateway.api.proxy_routes import router as proxy_router
from kroger_gateway.api.views import render_error
from kroger_gateway.clients import InMemorySessionStore
from kroger_gateway.core.config import AppSettings, get_settings
from kroger_gateway.core.errors import GatewayError
from kroger_gateway.core.logging import configure_logging
from kroger_gateway.core.sessions import ServerSideSessionMiddleware

logger = logging.getLogger(__name__)


async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
    return JSONResponse(status_code=int(exc.status_code), content=exc.to_payload())


async def unexpected_error_handler(request: Request, exc: Exception) -> Response:
    # The message is shown as-is; acceptable for this low-sensitivity sample service.
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if "text/html" in request.headers.get("accept", "").lower():
        return render_error(request, str(exc) or exc.__class__.__name__)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error", "message": str(exc)},
    )


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    session_store: Optional[InMemorySessionStore] = None,
) -> FastAPI:
    """Factory for the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    store = session_store if session_store is not None else InMemorySessionStore(
        max_age_seconds=settings.security.session_max_age_seconds
    )

    app = FastAPI(
        title="Kroger OAuth Gateway",
        version="0.1.0",
        description="OAuth2 session proxy for the Kroger public API.",
    )
    app.state.settings = settings
    app.state.session_store = store
    app.add_middleware(
        ServerSideSessionMiddleware,
        store=store,
        secret_key=settings.security.session_secret,
        max_age=settings.security.session_max_age_seconds,
        https_only=settings.security.session_https_only,
    )
    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
    app.include_router(auth_router)
    app.include_router(proxy_router, prefix="/api")

    logger.info("OAuth2 callback URL: %s", settings.kroger.redirect_uri)
    return app


app = create_app()

__all__ = ["app", "create_app"]
