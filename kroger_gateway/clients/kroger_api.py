"""
Kroger API client.

Wraps the token endpoint (authorization code, refresh and client credentials
grants) and the Bearer-authenticated resource endpoints. Every method makes a
single request; failures are raised as ``UpstreamApiError`` and never retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError as PydanticValidationError

from kroger_gateway.core.config import KrogerSettings, OAuthSettings
from kroger_gateway.core.errors import UpstreamApiError
from kroger_gateway.schemas.auth import TokenResponse

logger = logging.getLogger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})
_ALLOWED_METHODS = _BODY_METHODS | {"GET"}


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


class KrogerApiClient:
    """Build authorization URLs, manage grants and call resource endpoints."""

    AUTHORIZE_PATH = "/connect/oauth2/authorize"
    TOKEN_PATH = "/connect/oauth2/token"
    PROFILE_PATH = "/identity/profile"

    def __init__(
        self,
        kroger_settings: KrogerSettings,
        oauth_settings: OAuthSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._kroger = kroger_settings
        self._oauth = oauth_settings
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._kroger.api_base_url

    def build_authorization_url(self, state: str) -> str:
        """Construct the Kroger OAuth consent URL."""
        params = {
            "client_id": self._kroger.client_id,
            "response_type": "code",
            "redirect_uri": str(self._kroger.redirect_uri),
            "scope": self._oauth.scope,
            "state": state,
        }
        return f"{self.base_url}{self.AUTHORIZE_PATH}?{urlencode(params)}"

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._kroger.request_timeout_seconds,
            transport=self._transport,
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with self._http() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamApiError(f"Kroger API request timed out: {method} {url}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamApiError(f"Kroger API request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamApiError(
                upstream_status=response.status_code,
                body=_response_body(response),
            )
        return response

    async def _token_grant(self, form: Dict[str, str]) -> TokenResponse:
        response = await self._send(
            "POST",
            f"{self.base_url}{self.TOKEN_PATH}",
            data=form,
            auth=(self._kroger.client_id, self._kroger.client_secret),
            headers={"Accept": "application/json"},
        )
        body = _response_body(response)
        try:
            return TokenResponse.model_validate(body)
        except PydanticValidationError as exc:
            raise UpstreamApiError(
                "Incomplete token payload returned from Kroger.",
                upstream_status=response.status_code,
                body=body,
            ) from exc

    async def exchange_code(self, code: str) -> TokenResponse:
        """Exchange an authorization code for access and refresh tokens."""
        return await self._token_grant(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": str(self._kroger.redirect_uri),
            }
        )

    async def refresh(self, refresh_token: str) -> TokenResponse:
        """Refresh the access token using a stored refresh token."""
        return await self._token_grant(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    async def client_credentials(self) -> TokenResponse:
        """Obtain an application token for server-to-server calls."""
        return await self._token_grant(
            {
                "grant_type": "client_credentials",
                "scope": self._oauth.client_credentials_scope,
            }
        )

    async def get_profile(self, access_token: str) -> Any:
        return await self.request(self.PROFILE_PATH, access_token)

    async def request(
        self,
        path: str,
        access_token: str,
        method: str = "GET",
        body: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Call a resource endpoint with Bearer authentication.

        ``params`` are URL-encoded into the query string, ``None`` values are
        dropped. ``body`` is sent as JSON for POST, PUT and PATCH only.
        """
        verb = method.upper()
        if verb not in _ALLOWED_METHODS:
            raise ValueError(f"Unsupported method for Kroger API passthrough: {method}")

        kwargs: Dict[str, Any] = {
            "headers": {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        }
        if params:
            kwargs["params"] = {k: v for k, v in params.items() if v is not None}
        if body is not None and verb in _BODY_METHODS:
            kwargs["json"] = body

        response = await self._send(verb, f"{self.base_url}{path}", **kwargs)
        logger.debug("Kroger API %s %s -> %s", verb, path, response.status_code)
        return _response_body(response)


__all__ = ["KrogerApiClient"]
