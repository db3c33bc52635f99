"""Expose constructed client wrappers."""

from .kroger_api import KrogerApiClient
from .session_store import InMemorySessionStore

__all__ = [
    "InMemorySessionStore",
    "KrogerApiClient",
]
