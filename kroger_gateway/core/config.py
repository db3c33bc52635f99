"""
Application configuration models and helpers.

Settings are grouped by concern and read from the environment (optionally
seeded from a ``.env`` file). ``get_settings`` builds the groups once at
startup and reports every missing required variable in a single
``ConfigurationError`` so the process can fail fast.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import os

from pydantic import AnyHttpUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kroger_gateway.core.errors import ConfigurationError


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


_HTTP_URL = TypeAdapter(AnyHttpUrl)

# Only the documented names are read; field names never double as env vars.
_BASE_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
)


class KrogerSettings(BaseSettings):
    """Credentials and endpoints for the Kroger public API."""

    model_config = _BASE_CONFIG

    client_id: str = Field(..., alias="KROGER_CLIENT_ID")
    client_secret: str = Field(..., alias="KROGER_CLIENT_SECRET")
    redirect_uri: str = Field(..., alias="KROGER_REDIRECT_URI")
    api_base_url: str = Field("https://api.kroger.com/v1", alias="KROGER_API_BASE_URL")
    request_timeout_seconds: float = Field(
        15.0,
        alias="KROGER_TIMEOUT",
        description="Timeout applied to every outbound Kroger API call.",
    )

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("redirect_uri")
    @classmethod
    def _check_redirect_uri(cls, value: str) -> str:
        """Validate as an http(s) URL but keep the registered spelling."""
        value = value.strip()
        try:
            _HTTP_URL.validate_python(value)
        except ValidationError as exc:
            raise ValueError(f"not a valid http(s) URL: {value!r}") from exc
        return value


class SecuritySettings(BaseSettings):
    """Session signing and token encryption secrets."""

    model_config = _BASE_CONFIG

    session_secret: str = Field(..., alias="SESSION_SECRET")
    encryption_key: str = Field(
        ...,
        alias="ENCRYPTION_KEY",
        description="Secret used to derive the symmetric key for session tokens.",
    )
    session_max_age_seconds: int = Field(24 * 60 * 60, alias="SESSION_MAX_AGE")
    session_https_only: bool = Field(False, alias="SESSION_HTTPS_ONLY")


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = _BASE_CONFIG

    scope: str = Field("product.compact profile.compact", alias="OAUTH_SCOPES")
    client_credentials_scope: str = Field(
        "product.compact", alias="OAUTH_CLIENT_CREDENTIALS_SCOPE"
    )
    state_length: int = Field(32, alias="OAUTH_STATE_LENGTH", ge=24)
    refresh_horizon_seconds: int = Field(
        300,
        alias="OAUTH_REFRESH_HORIZON",
        description="API requests refresh tokens expiring within this window.",
    )

    @field_validator("scope", mode="before")
    @classmethod
    def _normalize_scope(cls, value: Any) -> str:
        """Support providing scopes as a comma-separated string or a list."""
        if isinstance(value, (list, tuple)):
            parts = [str(item) for item in value]
        else:
            parts = str(value).replace(",", " ").split()
        return " ".join(part.strip() for part in parts if part.strip())


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = _BASE_CONFIG

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    host: str = Field("127.0.0.1", alias="HOST")
    port: int = Field(3000, alias="PORT")
    kroger: KrogerSettings = Field(default_factory=KrogerSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)


REQUIRED_ENV_VARS = (
    "KROGER_CLIENT_ID",
    "KROGER_CLIENT_SECRET",
    "KROGER_REDIRECT_URI",
    "SESSION_SECRET",
    "ENCRYPTION_KEY",
)


def _missing_names(exc: ValidationError) -> list[str]:
    names = []
    for error in exc.errors():
        loc = error.get("loc") or ("<unknown>",)
        names.append(str(loc[0]))
    return names


def build_settings() -> AppSettings:
    """Construct settings, collecting every missing or invalid variable."""
    groups: dict[str, BaseSettings] = {}
    problems: list[str] = []
    for name, settings_cls in (
        ("kroger", KrogerSettings),
        ("security", SecuritySettings),
        ("oauth", OAuthSettings),
    ):
        try:
            groups[name] = settings_cls()  # type: ignore[call-arg]
        except ValidationError as exc:
            problems.extend(_missing_names(exc))

    # Blank values count as missing: an empty secret is never usable.
    for env_name in REQUIRED_ENV_VARS:
        if env_name in os.environ and not os.environ[env_name].strip():
            problems.append(env_name)

    if problems:
        raise ConfigurationError(problems)

    try:
        return AppSettings(**groups)
    except ValidationError as exc:
        raise ConfigurationError(_missing_names(exc)) from exc


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return build_settings()


__all__ = [
    "AppSettings",
    "KrogerSettings",
    "OAuthSettings",
    "REQUIRED_ENV_VARS",
    "SecuritySettings",
    "build_settings",
    "get_settings",
]
