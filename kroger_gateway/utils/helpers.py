"""Small helpers shared by the routes and templates."""

from __future__ import annotations

import secrets
import string
from datetime import datetime, timezone

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


def generate_random_string(length: int) -> str:
    """Return ``length`` characters drawn uniformly from ``ALPHABET``."""
    if isinstance(length, bool) or not isinstance(length, int) or length < 0:
        raise ValueError("length must be a non-negative integer")
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def format_timestamp(epoch_ms: int | None) -> str:
    if epoch_ms is None:
        return "unknown"
    moment = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


__all__ = ["ALPHABET", "format_timestamp", "generate_random_string", "now_ms"]
