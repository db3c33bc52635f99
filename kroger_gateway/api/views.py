"""Jinja2 templates for the browser-facing pages."""

from __future__ import annotations

from http import HTTPStatus
from pathlib import Path
from typing import Any, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from kroger_gateway.utils.helpers import format_timestamp

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["timestamp"] = format_timestamp


def render_error(
    request: Request,
    message: str,
    *,
    description: Optional[str] = None,
    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR,
    details: Any = None,
) -> Response:
    """Render the shared error page."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "error": {
                "message": message,
                "description": description,
                "details": details,
                "status": int(status_code),
            }
        },
        status_code=status_code,
    )


__all__ = ["TEMPLATES_DIR", "render_error", "templates"]
