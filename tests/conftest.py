"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from typing import Any, Optional

import httpx
import pytest
from itsdangerous import TimestampSigner

from kroger_gateway import dependencies
from kroger_gateway.clients import InMemorySessionStore
from kroger_gateway.core.config import build_settings
from kroger_gateway.core.errors import UpstreamApiError
from kroger_gateway.core.sessions import SESSION_COOKIE_NAME
from kroger_gateway.main import create_app
from kroger_gateway.schemas import TokenResponse


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


class StubKrogerClient:
    """Records every call; responses and failures are configurable per test."""

    def __init__(self) -> None:
        self.states: list[str] = []
        self.codes: list[str] = []
        self.refresh_calls: list[str] = []
        self.requests: list[dict[str, Any]] = []
        self.profile_calls: list[str] = []
        self.client_credentials_calls = 0

        self.exchange_expires_in = 3600
        self.exchange_error: Optional[UpstreamApiError] = None
        self.refresh_error: Optional[UpstreamApiError] = None
        self.profile_error: Optional[UpstreamApiError] = None
        self.request_error: Optional[UpstreamApiError] = None
        self.client_credentials_error: Optional[UpstreamApiError] = None
        self.response_body: Any = {"data": []}
        self.profile_body: Any = {"data": {"id": "customer-1"}}

    def build_authorization_url(self, state: str) -> str:
        self.states.append(state)
        return f"https://oauth.example.com/authorize?state={state}"

    async def exchange_code(self, code: str) -> TokenResponse:
        self.codes.append(code)
        if self.exchange_error:
            raise self.exchange_error
        return TokenResponse(
            access_token="access-1",
            refresh_token="refresh-1",
            expires_in=self.exchange_expires_in,
            token_type="bearer",
            scope="product.compact",
        )

    async def refresh(self, refresh_token: str) -> TokenResponse:
        self.refresh_calls.append(refresh_token)
        if self.refresh_error:
            raise self.refresh_error
        count = len(self.refresh_calls) + 1
        return TokenResponse(
            access_token=f"access-{count}",
            refresh_token=f"refresh-{count}",
            expires_in=1800,
        )

    async def client_credentials(self) -> TokenResponse:
        self.client_credentials_calls += 1
        if self.client_credentials_error:
            raise self.client_credentials_error
        return TokenResponse(
            access_token="app-token",
            expires_in=1800,
            token_type="bearer",
            scope="product.compact",
        )

    async def get_profile(self, access_token: str) -> Any:
        self.profile_calls.append(access_token)
        if self.profile_error:
            raise self.profile_error
        return self.profile_body

    async def request(
        self,
        path: str,
        access_token: str,
        method: str = "GET",
        body: Any = None,
        params: Any = None,
    ) -> Any:
        self.requests.append(
            {"path": path, "access_token": access_token, "method": method, "params": params}
        )
        if self.request_error:
            raise self.request_error
        return self.response_body


@pytest.fixture()
def settings():
    return build_settings()


@pytest.fixture()
def kroger_stub() -> StubKrogerClient:
    return StubKrogerClient()


@pytest.fixture()
def session_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture()
def gateway_app(settings, kroger_stub, session_store):
    application = create_app(settings, session_store=session_store)
    application.dependency_overrides[dependencies.get_kroger_client] = lambda: kroger_stub
    yield application
    application.dependency_overrides.clear()


def make_client(application) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=application),
        base_url="http://testserver",
        follow_redirects=False,
    )


def session_data(client: httpx.AsyncClient, application) -> Optional[dict]:
    """Server-side data of the session the client's cookie points at."""
    raw = client.cookies.get(SESSION_COOKIE_NAME)
    if not raw:
        return None
    signer = TimestampSigner(application.state.settings.security.session_secret)
    session_id = signer.unsign(raw).decode("utf-8")
    return application.state.session_store.get(session_id)


async def sign_in(client: httpx.AsyncClient, kroger_stub: StubKrogerClient) -> httpx.Response:
    """Run the authorize and callback round trip against the stub client."""
    await client.get("/authorize")
    state = kroger_stub.states[-1]
    return await client.get("/callback", params={"code": "auth-code", "state": state})
