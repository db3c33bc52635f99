"""
Explicit view over one user's server-side session.

Routes receive a ``Session`` through a dependency instead of reaching into
request state, and only touch the token record through these accessors.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from kroger_gateway.clients.session_store import InMemorySessionStore
from kroger_gateway.models.session import SessionTokenRecord


class Session:
    """Token record, OAuth state and profile snapshot for one browser."""

    TOKENS_KEY = "tokens"
    STATE_KEY = "oauth2_state"
    PROFILE_KEY = "user"

    def __init__(
        self,
        session_id: str,
        data: Dict[str, Any],
        store: InMemorySessionStore,
        *,
        is_new: bool = False,
    ) -> None:
        self.session_id = session_id
        self.data = data
        self.is_new = is_new
        self.destroyed = False
        self._store = store

    @property
    def tokens(self) -> Optional[SessionTokenRecord]:
        raw = self.data.get(self.TOKENS_KEY)
        if not raw:
            return None
        return SessionTokenRecord.model_validate(raw)

    @tokens.setter
    def tokens(self, record: SessionTokenRecord) -> None:
        self.data[self.TOKENS_KEY] = record.model_dump()

    def clear_tokens(self) -> None:
        self.data.pop(self.TOKENS_KEY, None)

    def issue_state(self, state: str) -> None:
        self.data[self.STATE_KEY] = state

    def consume_state(self) -> Optional[str]:
        """Return the pending OAuth state and invalidate it."""
        return self.data.pop(self.STATE_KEY, None) or None

    @property
    def profile(self) -> Optional[Dict[str, Any]]:
        return self.data.get(self.PROFILE_KEY)

    @profile.setter
    def profile(self, snapshot: Optional[Dict[str, Any]]) -> None:
        if snapshot is None:
            self.data.pop(self.PROFILE_KEY, None)
        else:
            self.data[self.PROFILE_KEY] = snapshot

    @property
    def is_authenticated(self) -> bool:
        return self.tokens is not None

    @property
    def refresh_lock(self) -> asyncio.Lock:
        return self._store.lock_for(self.session_id)

    def destroy(self) -> None:
        """Drop tokens, state and profile; the cookie is removed on response."""
        self.data.clear()
        self.destroyed = True


__all__ = ["Session"]
