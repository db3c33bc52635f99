"""In-memory server-side session storage keyed by session id."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Dict, Optional, Tuple


class InMemorySessionStore:
    """Process-local session data with a sliding expiry.

    The stored mapping is handed out by reference, so every request of the
    same session observes writes made by the others immediately. Idle
    sessions are dropped when looked up, and writes sweep the whole map at
    most once per ``sweep_interval_seconds``.
    """

    def __init__(
        self,
        *,
        max_age_seconds: int = 24 * 60 * 60,
        sweep_interval_seconds: float = 60.0,
    ) -> None:
        self._max_age = max_age_seconds
        self._sweep_interval = sweep_interval_seconds
        self._records: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._last_sweep = time.monotonic()

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        entry = self._records.get(session_id)
        if entry is None:
            return None
        data, last_seen = entry
        now = time.monotonic()
        if now - last_seen > self._max_age:
            self.delete(session_id)
            return None
        self._records[session_id] = (data, now)
        return data

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        now = time.monotonic()
        self._records[session_id] = (data, now)
        if now - self._last_sweep >= self._sweep_interval:
            self.purge_expired()

    def delete(self, session_id: str) -> None:
        self._records.pop(session_id, None)
        self._locks.pop(session_id, None)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Lock serializing token refreshes within one session."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    def purge_expired(self) -> int:
        now = time.monotonic()
        self._last_sweep = now
        expired = [
            session_id
            for session_id, (_, last_seen) in self._records.items()
            if now - last_seen > self._max_age
        ]
        for session_id in expired:
            self.delete(session_id)
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records


__all__ = ["InMemorySessionStore"]
