"""FastAPI dependencies for DesignDesk.

Provides shared dependencies (session identity, database, services) via
FastAPI's Depends() injection system. Routes receive the resolved
Identity as an argument and pass it on to the services explicitly.
"""

import logging
from typing import Optional

from fastapi import Depends, Request

from designdesk.core.auth import Identity
from designdesk.core.exceptions import AuthenticationError, AuthorizationError

logger = logging.getLogger(__name__)


async def get_db_manager(request: Request):
    """Get DatabaseManager from app state."""
    return request.app.state.db_manager


async def get_project_manager(request: Request):
    """Get ProjectManager from app state."""
    return request.app.state.project_manager


async def get_assignment_service(request: Request):
    """Get AssignmentService from app state."""
    return request.app.state.assignment_service


async def get_settings(request: Request):
    """Get Settings from app state."""
    return request.app.state.settings


def _resolve_identity(request: Request) -> Optional[Identity]:
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    identity = request.app.state.session_resolver.resolve(user_id)
    if identity is None:
        # Stale session: the user or its profile is gone
        request.session.clear()
    return identity


async def get_current_user(request: Request) -> Identity:
    """FastAPI dependency for authentication.

    Resolves the session into a full Identity (user + profile) or raises 401.
    """
    identity = _resolve_identity(request)
    if identity is None:
        raise AuthenticationError("Not authenticated")
    return identity


async def get_optional_user(request: Request) -> Optional[Identity]:
    """Like get_current_user but returns None instead of 401."""
    return _resolve_identity(request)


async def require_client(user: Identity = Depends(get_current_user)) -> Identity:
    """Require client role. Returns identity or raises 403."""
    if not user.is_client:
        raise AuthorizationError("Only clients can create projects")
    return user


async def require_project_manager(user: Identity = Depends(get_current_user)) -> Identity:
    """Require project_manager role. Returns identity or raises 403."""
    if not user.is_project_manager:
        raise AuthorizationError("Project manager access required")
    return user
