"""
Browser-facing OAuth routes: authorize, callback, profile, refresh and logout.
"""

from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from kroger_gateway.core.errors import CsrfStateMismatch, Unauthorized, UpstreamApiError
from kroger_gateway.dependencies import (
    get_app_settings,
    get_kroger_client,
    get_session,
    get_token_lifecycle_service,
)
from kroger_gateway.schemas import ClientCredentialsSummary, RefreshTokenResult
from kroger_gateway.api.views import render_error, templates
from kroger_gateway.utils.helpers import generate_random_string

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_PROFILE = {"name": "Kroger User"}


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=HTTPStatus.FOUND)


@router.get("/", include_in_schema=False)
async def home(
    request: Request,
    session: Annotated[Any, Depends(get_session)],
) -> Response:
    return templates.TemplateResponse(
        request,
        "index.html",
        {"user": session.profile, "is_authenticated": session.is_authenticated},
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/authorize")
async def authorize(
    session: Annotated[Any, Depends(get_session)],
    kroger_client: Annotated[Any, Depends(get_kroger_client)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> RedirectResponse:
    """Issue a fresh state value and send the browser to Kroger's consent page."""
    state = generate_random_string(settings.oauth.state_length)
    session.issue_state(state)
    return _redirect(kroger_client.build_authorization_url(state=state))


@router.get("/callback")
async def oauth_callback(
    request: Request,
    session: Annotated[Any, Depends(get_session)],
    kroger_client: Annotated[Any, Depends(get_kroger_client)],
    lifecycle: Annotated[Any, Depends(get_token_lifecycle_service)],
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    error_description: Optional[str] = Query(default=None),
) -> Response:
    """Complete the authorization code exchange and populate the session."""
    # Single use: invalidated before any outcome is decided.
    expected_state = session.consume_state()

    if error:
        logger.info("Authorization denied by Kroger: %s", error)
        return render_error(
            request,
            error,
            description=error_description or "No error description provided",
            status_code=HTTPStatus.BAD_REQUEST,
        )

    if not state or not expected_state or not secrets.compare_digest(
        state.encode("utf-8"), expected_state.encode("utf-8")
    ):
        mismatch = CsrfStateMismatch()
        logger.warning("Rejected OAuth callback with mismatched state.")
        return render_error(
            request,
            mismatch.error,
            description=mismatch.message,
            status_code=mismatch.status_code,
        )

    if not code:
        return render_error(
            request,
            "Invalid callback parameters",
            description="The authorization code is missing.",
            status_code=HTTPStatus.BAD_REQUEST,
        )

    try:
        token = await kroger_client.exchange_code(code)
    except UpstreamApiError as exc:
        logger.error(
            "Error exchanging code for tokens (status=%s): %s",
            exc.upstream_status,
            exc.detail,
        )
        return render_error(
            request,
            "Failed to exchange authorization code for tokens",
            description=exc.detail,
        )

    lifecycle.store_tokens(session, token)

    try:
        session.profile = await kroger_client.get_profile(token.access_token)
    except UpstreamApiError as exc:
        logger.warning("Error fetching user profile: %s", exc.detail)

    return _redirect("/profile")


@router.get("/login")
async def login() -> RedirectResponse:
    return _redirect("/authorize")


@router.get("/profile")
async def profile(
    request: Request,
    session: Annotated[Any, Depends(get_session)],
    lifecycle: Annotated[Any, Depends(get_token_lifecycle_service)],
) -> Response:
    """Render the signed-in user's profile, refreshing an expired token first."""
    if session.tokens is None:
        return _redirect("/authorize")

    try:
        await lifecycle.ensure_fresh(session, window=timedelta(0))
    except Unauthorized as exc:
        logger.warning("Error refreshing token for profile page: %s", exc.message)
        session.destroy()
        return _redirect("/authorize?error=session_expired")

    record = session.tokens
    return templates.TemplateResponse(
        request,
        "profile.html",
        {
            "user": session.profile or DEFAULT_PROFILE,
            "is_authenticated": True,
            "token_info": {
                "expires_at": record.expires_at,
                "is_valid": not record.is_expired(),
            },
        },
    )


@router.post("/refresh-token", response_model=RefreshTokenResult)
async def refresh_token(
    session: Annotated[Any, Depends(get_session)],
    lifecycle: Annotated[Any, Depends(get_token_lifecycle_service)],
) -> Any:
    """Force a token refresh for the current session."""
    record = session.tokens
    if record is None or not record.refresh_token:
        return JSONResponse(
            status_code=HTTPStatus.UNAUTHORIZED,
            content={"error": "No refresh token available"},
        )

    try:
        refreshed = await lifecycle.refresh(session)
    except Unauthorized as exc:
        return JSONResponse(
            status_code=HTTPStatus.UNAUTHORIZED,
            content={"error": "Failed to refresh token", "message": exc.message},
        )

    return RefreshTokenResult(expires_at=refreshed.expires_at)


@router.get("/logout")
async def logout(session: Annotated[Any, Depends(get_session)]) -> RedirectResponse:
    session.destroy()
    return _redirect("/")


@router.get("/client-credentials", response_model=ClientCredentialsSummary)
async def client_credentials(
    kroger_client: Annotated[Any, Depends(get_kroger_client)],
) -> Any:
    """Fetch an application token; never touches the user's session."""
    try:
        token = await kroger_client.client_credentials()
    except UpstreamApiError as exc:
        logger.error("Error getting client credentials token: %s", exc.detail)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={
                "error": "Failed to get client credentials token",
                "message": exc.detail,
            },
        )

    return ClientCredentialsSummary(
        token_type=token.token_type,
        expires_in=token.expires_in,
        scope=token.scope,
    )


__all__ = ["router"]
