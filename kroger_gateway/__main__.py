"""Run the gateway with uvicorn: ``python -m kroger_gateway``."""

from __future__ import annotations

import sys

import uvicorn

from kroger_gateway.core.errors import ConfigurationError


def _load_app():
    # Importing the module builds the app, which validates the settings.
    from kroger_gateway.main import app

    return app


def main() -> int:
    try:
        app = _load_app()
    except ConfigurationError as exc:
        print("Error: Missing required environment variables:", file=sys.stderr)
        for name in exc.missing:
            print(f"  - {name}", file=sys.stderr)
        print("\nPlease create a .env file based on .env.example", file=sys.stderr)
        return 1

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
