"""
Helpers for storing, refreshing and reading the session's OAuth tokens.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from kroger_gateway.clients.kroger_api import KrogerApiClient
from kroger_gateway.core.errors import CryptoError, Unauthorized, UpstreamApiError
from kroger_gateway.models.session import SessionTokenRecord
from kroger_gateway.schemas.auth import TokenResponse
from kroger_gateway.services.session import Session
from kroger_gateway.services.token_cipher import TokenCipherService
from kroger_gateway.utils.helpers import now_ms

logger = logging.getLogger(__name__)


class TokenLifecycleService:
    """Keeps the encrypted token record in a session usable."""

    _REFRESH_WINDOW = timedelta(minutes=5)

    def __init__(
        self,
        kroger_client: KrogerApiClient,
        token_cipher: TokenCipherService,
        *,
        refresh_window: Optional[timedelta] = None,
    ) -> None:
        self._kroger = kroger_client
        self._cipher = token_cipher
        self._refresh_window = (
            self._REFRESH_WINDOW if refresh_window is None else refresh_window
        )

    def build_record(
        self,
        token: TokenResponse,
        *,
        previous: Optional[SessionTokenRecord] = None,
    ) -> SessionTokenRecord:
        """Encrypt a token response into a session record."""
        encrypted_refresh = self._cipher.encrypt(token.refresh_token)
        if encrypted_refresh is None and previous is not None:
            encrypted_refresh = previous.refresh_token
        return SessionTokenRecord(
            access_token=self._cipher.encrypt(token.access_token),
            refresh_token=encrypted_refresh,
            expires_at=now_ms() + token.expires_in * 1000,
        )

    def store_tokens(self, session: Session, token: TokenResponse) -> SessionTokenRecord:
        record = self.build_record(token)
        session.tokens = record
        return record

    async def refresh(self, session: Session) -> SessionTokenRecord:
        """
        Replace the session's record using its refresh token.

        The record is either replaced in full or left untouched. Concurrent
        requests of one session serialize on the session's refresh lock; a
        request that finds the record already replaced while it waited reuses
        the new record instead of refreshing again.
        """
        record = session.tokens
        if record is None or not record.refresh_token:
            raise Unauthorized("No refresh token available")
        observed_expiry = record.expires_at

        async with session.refresh_lock:
            current = session.tokens
            if current is None or not current.refresh_token:
                raise Unauthorized("No refresh token available")
            if current.expires_at != observed_expiry:
                logger.debug("Session %s already refreshed concurrently.", session.session_id[:8])
                return current

            try:
                refresh_token = self._cipher.decrypt(current.refresh_token)
            except CryptoError as exc:
                raise Unauthorized("Stored refresh token could not be decrypted.") from exc

            try:
                token = await self._kroger.refresh(refresh_token)
            except UpstreamApiError as exc:
                logger.warning(
                    "Token refresh rejected by Kroger (status=%s): %s",
                    exc.upstream_status,
                    exc.detail,
                )
                raise Unauthorized(exc.detail) from exc

            refreshed = self.build_record(token, previous=current)
            session.tokens = refreshed
            return refreshed

    async def ensure_fresh(
        self, session: Session, *, window: Optional[timedelta] = None
    ) -> str:
        """
        Return a plaintext access token valid for at least ``window``.

        Raises ``Unauthorized`` when the session holds no tokens, when a
        required refresh fails, or when the stored token cannot be decrypted.
        """
        record = session.tokens
        if record is None:
            raise Unauthorized("Authentication required. Please log in.")

        horizon = self._refresh_window if window is None else window
        if record.expires_within(horizon):
            try:
                record = await self.refresh(session)
            except Unauthorized as exc:
                raise Unauthorized(
                    "Please log in again", error="Session expired"
                ) from exc

        try:
            access_token = self._cipher.decrypt(record.access_token)
        except CryptoError as exc:
            raise Unauthorized("Please log in again", error="Session expired") from exc
        if not access_token:
            raise Unauthorized("Please log in again", error="Session expired")
        return access_token


__all__ = ["TokenLifecycleService"]
