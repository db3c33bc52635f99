"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TokenResponse(BaseModel):
    """Payload returned by the Kroger token endpoint."""

    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = Field(
        None, description="Absent for the client credentials grant."
    )
    expires_in: int = Field(..., description="Access token lifetime in seconds.")
    token_type: str = "bearer"
    scope: Optional[str] = None


class RefreshTokenResult(BaseModel):
    """Response body of ``POST /refresh-token``."""

    success: bool = True
    expires_at: int


class ClientCredentialsSummary(BaseModel):
    """Token metadata reported by ``GET /client-credentials``."""

    success: bool = True
    token_type: str
    expires_in: int
    scope: Optional[str] = None


__all__ = ["ClientCredentialsSummary", "RefreshTokenResult", "TokenResponse"]
