"""
Domain models for the per-session token record.
"""

from datetime import timedelta
from typing import Optional

from pydantic import BaseModel, Field

from kroger_gateway.utils.helpers import now_ms


class SessionTokenRecord(BaseModel):
    """Encrypted tokens held in one user's session."""

    access_token: str = Field(..., description="Fernet ciphertext of the access token.")
    refresh_token: Optional[str] = Field(
        None, description="Fernet ciphertext of the refresh token."
    )
    expires_at: int = Field(..., description="Access token expiry, epoch milliseconds.")

    def is_expired(self, now: Optional[int] = None) -> bool:
        current = now_ms() if now is None else now
        return self.expires_at < current

    def expires_within(self, horizon: timedelta, now: Optional[int] = None) -> bool:
        """True when the access token expires before ``now + horizon``."""
        current = now_ms() if now is None else now
        return self.expires_at < current + int(horizon.total_seconds() * 1000)


__all__ = ["SessionTokenRecord"]
