"""Base class for the project and assignment services.

Both services read through the same DatabaseManager, check every call
against RBAC, and address rows by UUIDs that arrive as strings from the
API layer.
"""

import logging
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from ..auth import RBACService, get_rbac_service
from ..exceptions import NotFoundError

if TYPE_CHECKING:
    from ..db import DatabaseManager


class BaseService:
    """Shared database access, RBAC, and logging for workflow services."""

    def __init__(
        self,
        db_manager: "DatabaseManager",
        rbac: Optional[RBACService] = None,
    ):
        self._db_manager = db_manager
        self._rbac = rbac or get_rbac_service()
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    def db_manager(self) -> "DatabaseManager":
        return self._db_manager

    @property
    def rbac(self) -> RBACService:
        return self._rbac

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @staticmethod
    def _parse_uuid(value: str, label: str) -> UUID:
        """Parse a path id; a malformed id is reported like a missing row."""
        try:
            return UUID(str(value))
        except ValueError:
            raise NotFoundError(f"{label} not found")

    def _log_operation(self, operation: str, **kwargs) -> None:
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        self._logger.info(f"{operation}: {context}")

    def _log_error(self, operation: str, error: Exception, **kwargs) -> None:
        context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
        self._logger.error(
            f"{operation} failed: {error.__class__.__name__}: {error} ({context})"
        )
