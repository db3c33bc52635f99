"""Public schema exports."""

from .auth import ClientCredentialsSummary, RefreshTokenResult, TokenResponse

__all__ = [
    "ClientCredentialsSummary",
    "RefreshTokenResult",
    "TokenResponse",
]
