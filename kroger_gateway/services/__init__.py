"""Service layer exports."""

from .session import Session
from .token_cipher import TokenCipherService
from .token_lifecycle import TokenLifecycleService

__all__ = [
    "Session",
    "TokenCipherService",
    "TokenLifecycleService",
]
