"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends, Request

from kroger_gateway.clients import InMemorySessionStore, KrogerApiClient
from kroger_gateway.core.config import AppSettings
from kroger_gateway.services import Session, TokenCipherService, TokenLifecycleService

from .config import get_app_settings


@lru_cache()
def _cipher_for(secret: str) -> TokenCipherService:
    """Cache one cipher per key so the key is derived once per process."""
    return TokenCipherService(secret=secret)


def get_token_cipher_service(
    settings: AppSettings = Depends(get_app_settings),
) -> TokenCipherService:
    """Provide symmetric encryption helper for session tokens."""
    return _cipher_for(settings.security.encryption_key)


def get_kroger_client(
    settings: AppSettings = Depends(get_app_settings),
) -> KrogerApiClient:
    """Provide a Kroger API client bound to the application settings."""
    return KrogerApiClient(settings.kroger, settings.oauth)


def get_token_lifecycle_service(
    settings: AppSettings = Depends(get_app_settings),
    kroger_client: KrogerApiClient = Depends(get_kroger_client),
    token_cipher: TokenCipherService = Depends(get_token_cipher_service),
) -> TokenLifecycleService:
    """Build the token refresh helper from the injected client and cipher."""
    return TokenLifecycleService(
        kroger_client,
        token_cipher,
        refresh_window=timedelta(seconds=settings.oauth.refresh_horizon_seconds),
    )


def get_session_store(request: Request) -> InMemorySessionStore:
    return request.app.state.session_store


def get_session(request: Request) -> Session:
    """The current request's session, attached by the session middleware."""
    return request.state.session


__all__ = [
    "get_kroger_client",
    "get_session",
    "get_session_store",
    "get_token_cipher_service",
    "get_token_lifecycle_service",
]
