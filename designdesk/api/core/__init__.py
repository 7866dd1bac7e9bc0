"""API Core - Shared utilities for API routes.

This package provides:
- Unified response builders (success_response, error_response)
- Exception handlers mapping domain errors to HTTP status codes

Usage:
    from designdesk.api.core import success_response, error_response
    from designdesk.api.core import register_exception_handlers
"""

from .response import (
    success_response,
    error_response,
    register_exception_handlers,
)

__all__ = [
    "success_response",
    "error_response",
    "register_exception_handlers",
]
