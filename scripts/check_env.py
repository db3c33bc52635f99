"""Verify that the gateway's environment configuration is complete and unchanged.

Two checks are available:

1. Loading the settings from a ``.env`` file, reporting every required
   variable that is missing or blank (client id and secret, redirect URI,
   session secret, encryption key).
2. Recording and verifying a SHA-256 checksum of that file, so edits to the
   secrets between deploys are noticed before the service restarts.

Example usages::

    python -m scripts.check_env check --env-file /srv/kroger-gateway/.env

    python -m scripts.check_env record --env-file /srv/kroger-gateway/.env \
        --hash-file /srv/kroger-gateway/.env.sha256

    python -m scripts.check_env verify --env-file /srv/kroger-gateway/.env \
        --hash-file /srv/kroger-gateway/.env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from kroger_gateway.core.config import _load_env_file, build_settings
from kroger_gateway.core.errors import ConfigurationError

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _compute_hash(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _validate_settings(env_file: Path) -> None:
    """Load ``env_file`` into the environment and build the settings."""
    _load_env_file(str(env_file))
    build_settings()


def _record_checksum(env_file: Path, hash_file: Path) -> int:
    checksum = _compute_hash(env_file)
    hash_file.write_text(f"{checksum}\n", encoding="utf-8")
    print(f"Recorded checksum to {hash_file} ({checksum})")
    return EXIT_OK


def _verify_checksum(env_file: Path, hash_file: Path) -> int:
    """Compare the current checksum to the recorded baseline."""
    if not hash_file.exists():
        print(
            f"Checksum baseline {hash_file} not found; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _compute_hash(env_file)
    if expected == actual:
        print("Environment checksum OK.")
        return EXIT_OK

    print(
        "Environment checksum mismatch!\n"
        f"  expected: {expected}\n"
        f"  actual:   {actual}",
        file=sys.stderr,
    )
    return EXIT_CHECKSUM_ERROR


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check gateway settings and detect .env drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_env_file(subparser: argparse.ArgumentParser) -> None:
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Path to the environment file (default: ./.env).",
        )

    def add_hash_file(subparser: argparse.ArgumentParser, help_text: str) -> None:
        subparser.add_argument("--hash-file", required=True, type=Path, help=help_text)

    check_parser = subparsers.add_parser("check", help="Only validate the settings.")
    add_env_file(check_parser)

    record_parser = subparsers.add_parser(
        "record", help="Validate settings and store the checksum baseline."
    )
    add_env_file(record_parser)
    add_hash_file(record_parser, "Where to write the checksum baseline.")

    verify_parser = subparsers.add_parser(
        "verify", help="Validate settings and compare against the baseline."
    )
    add_env_file(verify_parser)
    add_hash_file(verify_parser, "Previously recorded checksum baseline.")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    env_file: Path = args.env_file
    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        _validate_settings(env_file)
    except ConfigurationError as exc:
        print("Settings validation failed:", file=sys.stderr)
        for name in exc.missing:
            print(f"  - {name}", file=sys.stderr)
        return EXIT_VALIDATION_ERROR
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error during validation: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: EXIT_OK,
        "record": lambda: _record_checksum(env_file, args.hash_file),
        "verify": lambda: _verify_checksum(env_file, args.hash_file),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
