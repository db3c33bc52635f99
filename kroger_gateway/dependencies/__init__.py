"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_kroger_client,
    get_session,
    get_session_store,
    get_token_cipher_service,
    get_token_lifecycle_service,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_kroger_client",
    "get_session",
    "get_session_store",
    "get_token_cipher_service",
    "get_token_lifecycle_service",
]
