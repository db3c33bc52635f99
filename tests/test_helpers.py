try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import timedelta

import pytest

from kroger_gateway.models.session import SessionTokenRecord
from kroger_gateway.utils.helpers import (
    ALPHABET,
    format_timestamp,
    generate_random_string,
)


@pytest.mark.parametrize("length", [0, 1, 24, 32, 128])
def test_generate_random_string_length_and_alphabet(length: int) -> None:
    value = generate_random_string(length)

    assert len(value) == length
    assert set(value) <= set(ALPHABET)


def test_alphabet_is_62_alphanumerics() -> None:
    assert len(ALPHABET) == 62
    assert ALPHABET.isalnum()


def test_generate_random_string_values_differ() -> None:
    values = {generate_random_string(32) for _ in range(50)}
    assert len(values) == 50


@pytest.mark.parametrize("length", [-1, 2.5, "8", True])
def test_generate_random_string_rejects_invalid_length(length) -> None:
    with pytest.raises(ValueError):
        generate_random_string(length)


def test_format_timestamp() -> None:
    assert format_timestamp(0) == "1970-01-01 00:00:00 UTC"
    assert format_timestamp(None) == "unknown"


def test_record_expiry_helpers() -> None:
    record = SessionTokenRecord(access_token="a", refresh_token="r", expires_at=10_000)

    assert record.is_expired(now=10_001)
    assert not record.is_expired(now=9_999)
    assert record.expires_within(timedelta(seconds=5), now=6_000)
    assert not record.expires_within(timedelta(seconds=5), now=4_000)
