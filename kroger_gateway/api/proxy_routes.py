"""
JSON proxy routes forwarding read-only calls to the Kroger API.

Every route runs the same guard sequence: the session must hold tokens, a
token close to expiry is refreshed first, and only then are the request's own
parameters checked and the call forwarded.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, Mapping, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from kroger_gateway.core.errors import UpstreamApiError, ValidationError
from kroger_gateway.dependencies import (
    get_kroger_client,
    get_session,
    get_token_lifecycle_service,
)

router = APIRouter()
logger = logging.getLogger(__name__)


async def require_access_token(
    session: Annotated[Any, Depends(get_session)],
    lifecycle: Annotated[Any, Depends(get_token_lifecycle_service)],
) -> str:
    """Plaintext access token for this request; raises ``Unauthorized``."""
    return await lifecycle.ensure_fresh(session)


AccessToken = Annotated[str, Depends(require_access_token)]


async def _forward(
    kroger_client: Any,
    path: str,
    access_token: str,
    *,
    failure: str,
    params: Optional[Mapping[str, Any]] = None,
) -> Any:
    try:
        return await kroger_client.request(path, access_token, params=params)
    except UpstreamApiError as exc:
        logger.error("%s (status=%s): %s", failure, exc.upstream_status, exc.detail)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": failure, "message": exc.detail},
        )


@router.get("/products")
async def search_products(
    access_token: AccessToken,
    kroger_client: Annotated[Any, Depends(get_kroger_client)],
    term: Optional[str] = Query(default=None, description="Product search term."),
    location_id: Optional[str] = Query(default=None, alias="locationId"),
) -> Any:
    """Search products, optionally scoped to a store location."""
    if not term:
        raise ValidationError("Search term is required", error="Search term is required")

    return await _forward(
        kroger_client,
        "/products",
        access_token,
        failure="Failed to search products",
        params={"filter.term": term, "filter.locationId": location_id or None},
    )


@router.get("/locations")
async def search_locations(
    access_token: AccessToken,
    kroger_client: Annotated[Any, Depends(get_kroger_client)],
    zip_code: Optional[str] = Query(default=None, alias="zipCode"),
    radius: Optional[str] = Query(default=None, description="Radius in miles."),
) -> Any:
    """Search store locations near a ZIP code."""
    if not zip_code:
        raise ValidationError("ZIP code is required", error="ZIP code is required")

    return await _forward(
        kroger_client,
        "/locations",
        access_token,
        failure="Failed to search locations",
        params={"filter.zipCode.near": zip_code, "filter.radiusInMiles": radius or None},
    )


@router.get("/profile")
async def fetch_profile(
    access_token: AccessToken,
    kroger_client: Annotated[Any, Depends(get_kroger_client)],
) -> Any:
    return await _forward(
        kroger_client,
        "/identity/profile",
        access_token,
        failure="Failed to fetch user profile",
    )


__all__ = ["router", "require_access_token"]
