"""FastAPI application factory for DesignDesk.

Creates and configures the FastAPI app with CORS, session auth,
exception handlers, and all route modules registered.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from designdesk import __version__
from designdesk.core.auth import SessionResolver
from designdesk.setting import Settings, get_settings

from .core import register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(
    db_manager,
    project_manager,
    assignment_service,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_manager: DatabaseManager instance
        project_manager: ProjectManager instance
        assignment_service: AssignmentService instance
        settings: Settings (defaults to the environment-loaded settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="DesignDesk API",
        description="Role-based project coordination for clients, project managers and designers",
        version=__version__,
    )

    # Session middleware (required for auth sessions)
    app.add_middleware(SessionMiddleware, secret_key=settings.session_secret_key)

    # CORS for the web frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Store shared dependencies on app state
    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.project_manager = project_manager
    app.state.assignment_service = assignment_service
    app.state.session_resolver = SessionResolver(db_manager)

    # Register routers
    from .routes.fastapi_auth import router as auth_router
    from .routes.profile import router as profile_router
    from .routes.projects import router as projects_router
    from .routes.assignments import router as assignments_router

    app.include_router(auth_router, prefix="/api")
    app.include_router(profile_router, prefix="/api")
    app.include_router(projects_router, prefix="/api")
    app.include_router(assignments_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok", "service": "designdesk"}

    logger.info("FastAPI app created with all routes registered")
    return app
