"""Domain exceptions raised by DesignDesk services.

Each exception carries the HTTP status the API layer answers with, so
services stay free of FastAPI imports.
"""

from typing import List, Optional


class DesignDeskError(Exception):
    """Base class for all DesignDesk errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthenticationError(DesignDeskError):
    """No session, or the session does not resolve to a full identity."""

    status_code = 401


class AuthorizationError(DesignDeskError):
    """Role or ownership does not allow the action."""

    status_code = 403


class NotFoundError(DesignDeskError):
    status_code = 404


class ValidationError(DesignDeskError):
    status_code = 400


class ConflictError(DesignDeskError):
    status_code = 409


class ServiceError(DesignDeskError):
    """An underlying record store or blob store call failed."""

    status_code = 500


class PartialFailureError(ServiceError):
    """A multi-step operation failed after some steps were applied.

    Applied steps are left in place; ``completed`` lists what they were.
    """

    def __init__(self, message: str, completed: Optional[List[str]] = None):
        super().__init__(message)
        self.completed = list(completed or [])
