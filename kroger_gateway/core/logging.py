"""
Logging utilities for the gateway.

Provides a consistent logging format and configuration; uvicorn's own
loggers are routed through the same handler so access lines share it.
"""

import logging
import sys

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format=_FORMAT,
        stream=sys.stdout,
    )
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True
    # httpx logs every request line at INFO, including token endpoint calls.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
