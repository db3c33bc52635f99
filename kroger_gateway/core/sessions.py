"""
Server-side session middleware.

Only a random session id travels in the cookie, signed with the configured
session secret; the session data itself stays in the session store.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from itsdangerous import BadSignature, TimestampSigner
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from kroger_gateway.clients.session_store import InMemorySessionStore
from kroger_gateway.services.session import Session

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "kroger_session"


class ServerSideSessionMiddleware(BaseHTTPMiddleware):
    """Attach a ``Session`` to ``request.state`` and persist it afterwards."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        store: InMemorySessionStore,
        secret_key: str,
        max_age: int = 24 * 60 * 60,
        https_only: bool = False,
        cookie_name: str = SESSION_COOKIE_NAME,
    ) -> None:
        super().__init__(app)
        self._store = store
        self._signer = TimestampSigner(secret_key)
        self._max_age = max_age
        self._https_only = https_only
        self._cookie_name = cookie_name

    def _session_id_from_cookie(self, request: Request) -> Optional[str]:
        raw = request.cookies.get(self._cookie_name)
        if not raw:
            return None
        try:
            return self._signer.unsign(raw, max_age=self._max_age).decode("utf-8")
        except BadSignature:
            logger.info("Ignoring session cookie with an invalid signature.")
            return None

    def sign(self, session_id: str) -> str:
        return self._signer.sign(session_id).decode("utf-8")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        session_id = self._session_id_from_cookie(request)
        data = self._store.get(session_id) if session_id else None
        if session_id is None or data is None:
            session = Session(
                secrets.token_urlsafe(32), {}, self._store, is_new=True
            )
        else:
            session = Session(session_id, data, self._store)
        request.state.session = session

        response = await call_next(request)

        if session.destroyed:
            self._store.delete(session.session_id)
            response.delete_cookie(self._cookie_name, path="/")
        elif session.data:
            self._store.save(session.session_id, session.data)
            response.set_cookie(
                self._cookie_name,
                self.sign(session.session_id),
                max_age=self._max_age,
                path="/",
                httponly=True,
                secure=self._https_only,
                samesite="lax",
            )
        elif not session.is_new:
            self._store.delete(session.session_id)
            response.delete_cookie(self._cookie_name, path="/")
        return response


__all__ = ["SESSION_COOKIE_NAME", "ServerSideSessionMiddleware"]
