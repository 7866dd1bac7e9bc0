"""Database connection and session management for DesignDesk."""

import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url

        engine_kwargs = {"echo": echo}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise each session sees an empty database
                engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs.update(pool_size=5, max_overflow=10, pool_pre_ping=True, pool_recycle=3600)

        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(
            bind=self.engine, autocommit=False, autoflush=False, expire_on_commit=False
        )
        logger.info(f"DatabaseManager initialized ({self.engine.dialect.name})")

    def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ensured")

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Yield a session, committing on success and rolling back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.debug(f"Database ping failed: {e}")
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_database_manager(database_url: Optional[str] = None) -> DatabaseManager:
    """Build a DatabaseManager from an explicit URL or the configured one."""
    if database_url is None:
        from designdesk.setting import get_settings
        database_url = get_settings().database_url
    return DatabaseManager(database_url)


def wait_for_db(db_manager: DatabaseManager, retries: int = 10, delay: float = 2.0) -> bool:
    """Block until the database answers, up to ``retries`` attempts."""
    for attempt in range(1, retries + 1):
        if db_manager.ping():
            return True
        logger.warning(f"Database not ready (attempt {attempt}/{retries}), retrying in {delay}s")
        time.sleep(delay)
    logger.error("Database did not become available")
    return False
