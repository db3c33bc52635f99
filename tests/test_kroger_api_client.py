from __future__ import annotations

import base64
import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from kroger_gateway.clients.kroger_api import KrogerApiClient
from kroger_gateway.core.config import KrogerSettings, OAuthSettings
from kroger_gateway.core.errors import UpstreamApiError


def _settings() -> tuple[KrogerSettings, OAuthSettings]:
    kroger = KrogerSettings(
        KROGER_CLIENT_ID="client",
        KROGER_CLIENT_SECRET="secret",
        KROGER_REDIRECT_URI="http://localhost:3000/callback",
        KROGER_API_BASE_URL="https://api.kroger.test/v1/",
    )
    oauth = OAuthSettings(OAUTH_SCOPES="product.compact,profile.compact")
    return kroger, oauth


class RecordingHandler:
    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _client(handler: RecordingHandler) -> KrogerApiClient:
    kroger, oauth = _settings()
    return KrogerApiClient(kroger, oauth, transport=httpx.MockTransport(handler))


def _token_payload(**overrides) -> dict:
    payload = {
        "access_token": "access",
        "refresh_token": "refresh",
        "expires_in": 1800,
        "token_type": "bearer",
        "scope": "product.compact",
    }
    payload.update(overrides)
    return payload


def test_build_authorization_url_includes_oauth_parameters() -> None:
    client = _client(RecordingHandler(httpx.Response(200)))

    url = urlparse(client.build_authorization_url(state="abc123"))
    query = parse_qs(url.query)

    assert url.netloc == "api.kroger.test"
    assert url.path == "/v1/connect/oauth2/authorize"
    assert query == {
        "client_id": ["client"],
        "response_type": ["code"],
        "redirect_uri": ["http://localhost:3000/callback"],
        "scope": ["product.compact profile.compact"],
        "state": ["abc123"],
    }


@pytest.mark.asyncio
async def test_exchange_code_posts_form_with_basic_auth() -> None:
    handler = RecordingHandler(httpx.Response(200, json=_token_payload()))
    client = _client(handler)

    token = await client.exchange_code("the-code")

    assert token.access_token == "access"
    assert token.refresh_token == "refresh"
    assert token.expires_in == 1800

    request = handler.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.kroger.test/v1/connect/oauth2/token"
    expected_auth = base64.b64encode(b"client:secret").decode()
    assert request.headers["authorization"] == f"Basic {expected_auth}"
    form = parse_qs(request.content.decode())
    assert form == {
        "grant_type": ["authorization_code"],
        "code": ["the-code"],
        "redirect_uri": ["http://localhost:3000/callback"],
    }


@pytest.mark.asyncio
async def test_refresh_surfaces_upstream_error() -> None:
    handler = RecordingHandler(
        httpx.Response(
            400,
            json={"error": "invalid_grant", "error_description": "Refresh token expired"},
        )
    )
    client = _client(handler)

    with pytest.raises(UpstreamApiError) as excinfo:
        await client.refresh("stale")

    assert excinfo.value.upstream_status == 400
    assert excinfo.value.detail == "Refresh token expired"
    assert len(handler.requests) == 1
    form = parse_qs(handler.requests[0].content.decode())
    assert form == {"grant_type": ["refresh_token"], "refresh_token": ["stale"]}


@pytest.mark.asyncio
async def test_client_credentials_uses_fixed_scope() -> None:
    handler = RecordingHandler(
        httpx.Response(200, json=_token_payload(refresh_token=None))
    )
    client = _client(handler)

    token = await client.client_credentials()

    assert token.refresh_token is None
    form = parse_qs(handler.requests[0].content.decode())
    assert form == {"grant_type": ["client_credentials"], "scope": ["product.compact"]}


@pytest.mark.asyncio
async def test_incomplete_token_payload_is_an_upstream_error() -> None:
    handler = RecordingHandler(httpx.Response(200, json={"token_type": "bearer"}))
    client = _client(handler)

    with pytest.raises(UpstreamApiError):
        await client.exchange_code("code")


@pytest.mark.asyncio
async def test_get_request_encodes_params_and_drops_body() -> None:
    handler = RecordingHandler(httpx.Response(200, json={"data": [{"productId": "1"}]}))
    client = _client(handler)

    body = await client.request(
        "/products",
        "user-token",
        body={"ignored": True},
        params={"filter.term": "whole milk", "filter.locationId": None},
    )

    assert body == {"data": [{"productId": "1"}]}
    request = handler.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/v1/products"
    assert request.url.params["filter.term"] == "whole milk"
    assert "filter.locationId" not in request.url.params
    assert b"whole+milk" in request.url.query or b"whole%20milk" in request.url.query
    assert request.headers["authorization"] == "Bearer user-token"
    assert request.content == b""


@pytest.mark.asyncio
async def test_put_request_sends_json_body() -> None:
    handler = RecordingHandler(httpx.Response(204))
    client = _client(handler)

    await client.request(
        "/cart/add", "user-token", method="put", body={"items": [{"upc": "1", "quantity": 1}]}
    )

    request = handler.requests[0]
    assert request.method == "PUT"
    assert json.loads(request.content) == {"items": [{"upc": "1", "quantity": 1}]}


@pytest.mark.asyncio
async def test_unsupported_method_is_rejected() -> None:
    handler = RecordingHandler(httpx.Response(200))
    client = _client(handler)

    with pytest.raises(ValueError):
        await client.request("/products", "token", method="DELETE")
    assert handler.requests == []


@pytest.mark.asyncio
async def test_timeout_becomes_upstream_error() -> None:
    handler = RecordingHandler(httpx.ReadTimeout("timed out"))
    client = _client(handler)

    with pytest.raises(UpstreamApiError) as excinfo:
        await client.get_profile("token")

    assert excinfo.value.upstream_status is None
    assert "timed out" in excinfo.value.detail


@pytest.mark.asyncio
async def test_non_json_error_body_is_kept_as_text() -> None:
    handler = RecordingHandler(httpx.Response(502, text="Bad gateway"))
    client = _client(handler)

    with pytest.raises(UpstreamApiError) as excinfo:
        await client.get_profile("token")

    assert excinfo.value.upstream_status == 502
    assert excinfo.value.body == "Bad gateway"
    assert excinfo.value.detail == "Kroger API responded with status 502."


@pytest.mark.asyncio
async def test_redirect_uri_without_path_is_sent_verbatim() -> None:
    handler = RecordingHandler(httpx.Response(200, json=_token_payload()))
    kroger = KrogerSettings(
        KROGER_CLIENT_ID="client",
        KROGER_CLIENT_SECRET="secret",
        KROGER_REDIRECT_URI="http://localhost:3000",
        KROGER_API_BASE_URL="https://api.kroger.test/v1",
    )
    client = KrogerApiClient(
        kroger, OAuthSettings(), transport=httpx.MockTransport(handler)
    )

    authorize = parse_qs(urlparse(client.build_authorization_url(state="s")).query)
    await client.exchange_code("the-code")

    assert authorize["redirect_uri"] == ["http://localhost:3000"]
    assert parse_qs(handler.requests[0].content.decode())["redirect_uri"] == [
        "http://localhost:3000"
    ]
