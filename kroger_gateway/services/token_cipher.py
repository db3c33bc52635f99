"""Symmetric encryption utilities for protecting session tokens."""

from __future__ import annotations

import base64
import hashlib
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from kroger_gateway.core.errors import ConfigurationError, CryptoError


class TokenCipherService:
    """Encrypt and decrypt token strings using a derived Fernet key.

    Fernet draws a fresh IV for every call, so encrypting the same token
    twice yields different ciphertexts.
    """

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ConfigurationError(["ENCRYPTION_KEY"])
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        """Encrypt a plaintext string and return the ciphertext."""
        if not plaintext:
            return None
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return token.decode("utf-8")

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        """Decrypt a ciphertext string and return the plaintext."""
        if not ciphertext:
            return None
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
            return plaintext.decode("utf-8")
        except (InvalidToken, UnicodeDecodeError) as exc:
            raise CryptoError(
                "Failed to decrypt token; invalid ciphertext provided."
            ) from exc


__all__ = ["TokenCipherService"]
