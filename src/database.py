"""Database configuration and session management."""

import logging
from collections.abc import Generator
from functools import lru_cache
from typing import Any

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from src.config import get_settings

logger = logging.getLogger(__name__)

Base: Any = declarative_base()


class Database:
    """Process-wide handle on the user store.

    The engine is created on the first call to :meth:`connect` and reused by
    every later call, so serverless hosts that keep the process warm share one
    connection pool across invocations.
    """

    def __init__(self, url: str, connect_timeout: int = 5):
        self.url = url
        self.connect_timeout = connect_timeout
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    def _engine_options(self) -> dict[str, Any]:
        if self.url.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
            "connect_args": {"connect_timeout": self.connect_timeout},
        }

    def connect(self) -> Engine:
        """Create the engine, or return the existing one."""
        if self._engine is not None:
            logger.debug("Using existing database connection")
            return self._engine

        engine = create_engine(self.url, **self._engine_options())
        try:
            with engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            engine.dispose()
            logger.error(f"Database connection error: {e.__class__.__name__}")
            logger.error(f"Connection URL: {'Set' if self.url else 'Not set'}")
            raise

        self._engine = engine
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        logger.info("Database connected successfully")
        return engine

    def session(self) -> Session:
        """Open a new session bound to the shared engine."""
        self.connect()
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()

    def create_all(self) -> None:
        """Create the tables for all registered models."""
        # Import models so they are registered with Base.metadata
        from src import models  # noqa: F401

        Base.metadata.create_all(bind=self.connect())

    def dispose(self) -> None:
        """Release the connection pool. A later connect() acquires a new one."""
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        logger.info("Database disconnected")


@lru_cache
def get_database() -> Database:
    """Get the process-wide database handle."""
    settings = get_settings()
    return Database(settings.database_url, settings.database_connect_timeout)


def get_db() -> Generator[Session, None, None]:
    """Dependency that provides a database session."""
    db = get_database().session()
    try:
        yield db
    finally:
        db.close()
