"""Unified JSON responses and exception handlers for the API."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from designdesk.core.exceptions import DesignDeskError, PartialFailureError

logger = logging.getLogger(__name__)


def success_response(message: str = "", **data: Any) -> dict:
    payload = {"success": True}
    if message:
        payload["message"] = message
    payload.update(data)
    return payload


def error_response(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    """Build ``{"success": false, "error": ..., "detail": ...}`` with a status."""
    content = {"success": False, "error": message, "detail": message}
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content)


async def _handle_designdesk_error(request: Request, exc: DesignDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    extra = {}
    if isinstance(exc, PartialFailureError):
        extra["completed"] = exc.completed
    return error_response(exc.message, exc.status_code, **extra)


def register_exception_handlers(app: FastAPI) -> None:
    """Translate domain exceptions into JSON error responses."""
    app.add_exception_handler(DesignDeskError, _handle_designdesk_error)
