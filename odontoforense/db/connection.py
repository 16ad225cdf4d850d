"""
Database connection management
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, Engine, make_url, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from config.settings import settings
from odontoforense.db.base import Base
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """Owns the engine and the session factory"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.engine: Engine = None
        self.SessionLocal: sessionmaker = None
        self._initialize()

    def _engine_options(self) -> dict:
        if not self.database_url.startswith("sqlite"):
            return {
                "poolclass": QueuePool,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_pre_ping": True,
            }

        options = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live inside a single connection
        if self.database_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return options

    def _initialize(self):
        """Create the engine and session factory"""
        url = make_url(self.database_url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        try:
            self.engine = create_engine(self.database_url, echo=False, **self._engine_options())

            self.SessionLocal = sessionmaker(
                autoflush=False,
                expire_on_commit=False,
                bind=self.engine
            )

            logger.info("Database engine initialised")
        except Exception as e:
            logger.error(f"Database engine initialisation failed: {str(e)}")
            raise

    def create_all(self) -> None:
        """Create every table that does not exist yet"""
        from odontoforense.db import models  # noqa: F401  registers the mappers
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready")

    def get_session(self) -> Session:
        """
        Open a new session

        Returns:
            Session instance
        """
        return self.SessionLocal()

    @contextmanager
    def get_db_session(self) -> Generator[Session, None, None]:
        """
        Session scope that commits on success and rolls back on error

        Yields:
            Session instance

        Example:
            with db_manager.get_db_session() as session:
                session.add(record)
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {str(e)}")
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        """
        Check the database connection

        Returns:
            True when a trivial query succeeds
        """
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False

    def close(self):
        """Dispose of the engine"""
        if self.engine:
            self.engine.dispose()
            logger.info("Database connection closed")


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a session from the application's manager

    Yields:
        Session instance
    """
    session = request.app.state.db_manager.get_session()
    try:
        yield session
    finally:
        session.close()
