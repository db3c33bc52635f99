"""
Exception taxonomy shared by the gateway's clients, services and routes.

Each error carries the HTTP status it maps to plus a short label and a
human-readable message, so route handlers can convert it to a response
without inspecting the failure further.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Iterable, Optional


class GatewayError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    error: str = "Internal error"

    def __init__(self, message: str | None = None, *, error: str | None = None) -> None:
        self.message = message or self.error
        if error is not None:
            self.error = error
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(GatewayError):
    """Missing or malformed request parameters."""

    status_code = HTTPStatus.BAD_REQUEST
    error = "Invalid request"


class Unauthorized(GatewayError):
    """No usable session, or the session could not be refreshed."""

    status_code = HTTPStatus.UNAUTHORIZED
    error = "Unauthorized"


class CsrfStateMismatch(GatewayError):
    """The OAuth callback carried a state value that was never issued."""

    status_code = HTTPStatus.BAD_REQUEST
    error = "Invalid state parameter"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "The state parameter does not match. This could be a CSRF attack attempt."
        )


class CryptoError(GatewayError):
    """Stored ciphertext could not be decrypted with the configured key."""

    status_code = HTTPStatus.UNAUTHORIZED
    error = "Unauthorized"


class UpstreamApiError(GatewayError):
    """The Kroger API answered with a non-2xx status or could not be reached."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    error = "Upstream API error"

    def __init__(
        self,
        message: str | None = None,
        *,
        upstream_status: Optional[int] = None,
        body: Any = None,
    ) -> None:
        self.upstream_status = upstream_status
        self.body = body
        super().__init__(message or self._describe(upstream_status, body))

    @staticmethod
    def _describe(upstream_status: Optional[int], body: Any) -> str:
        if upstream_status is None:
            return "Kroger API request failed."
        return f"Kroger API responded with status {upstream_status}."

    @property
    def detail(self) -> str:
        """Most specific message the upstream supplied, else our own."""
        if isinstance(self.body, dict):
            for key in ("message", "error_description", "error"):
                value = self.body.get(key)
                if isinstance(value, str) and value:
                    return value
            errors = self.body.get("errors")
            if isinstance(errors, dict):
                reason = errors.get("reason")
                if isinstance(reason, str) and reason:
                    return reason
        return self.message


class ConfigurationError(GatewayError):
    """Required settings are missing; the process must not start."""

    error = "Configuration error"

    def __init__(self, missing: Iterable[str], message: str | None = None) -> None:
        self.missing = sorted(set(missing))
        super().__init__(
            message
            or "Missing or invalid environment variables: " + ", ".join(self.missing)
        )


__all__ = [
    "ConfigurationError",
    "CryptoError",
    "CsrfStateMismatch",
    "GatewayError",
    "Unauthorized",
    "UpstreamApiError",
    "ValidationError",
]
