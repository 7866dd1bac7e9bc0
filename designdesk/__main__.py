import argparse
import logging
import sys
from pathlib import Path

from .core import AssignmentService, LocalBlobStore, ProjectManager
from .core.db import get_database_manager, wait_for_db


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)


logger = logging.getLogger(__name__)


def main():
    """Main entry point for DesignDesk."""
    from .setting import get_settings
    settings = get_settings()

    parser = argparse.ArgumentParser(description="DesignDesk - Design Project Coordination")
    parser.add_argument(
        "--port",
        type=int,
        default=9005,
        help="Port for the API server"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Run in debug mode (auto-reload)"
    )
    args = parser.parse_args()

    setup_logging(args.log_level)
    logger.info("Starting DesignDesk")

    # Ensure upload directory exists
    upload_path = Path(settings.upload_dir)
    upload_path.mkdir(parents=True, exist_ok=True)

    db_manager = get_database_manager(settings.database_url)
    if not wait_for_db(db_manager):
        logger.error("Database unavailable, exiting")
        sys.exit(1)
    db_manager.init_db()

    blob_store = LocalBlobStore(upload_path)
    project_manager = ProjectManager(db_manager, blob_store)
    assignment_service = AssignmentService(db_manager, project_manager)
    logger.info("Project and assignment services initialized")

    # Build FastAPI app
    from .api.app import create_app
    app = create_app(
        db_manager=db_manager,
        project_manager=project_manager,
        assignment_service=assignment_service,
        settings=settings,
    )

    # Launch with uvicorn
    import uvicorn

    logger.info(f"Starting FastAPI server on http://0.0.0.0:{args.port}")
    print(f"\n  DesignDesk is running at: http://localhost:{args.port}")
    print(f"  API docs at: http://localhost:{args.port}/docs\n")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=args.port,
        log_level=args.log_level.lower(),
        reload=args.debug,
    )
    db_manager.dispose()


if __name__ == "__main__":
    main()
