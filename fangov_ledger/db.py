"""Database connection and session management"""
import logging
import threading
from contextlib import contextmanager, nullcontext
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from fangov_ledger.config import Settings
from fangov_ledger.models.db import Base
from fangov_ledger.db_config import ConnectionTarget, DatabaseManager

logger = logging.getLogger(__name__)

class Database:
    """Database connection and session manager for one logical ledger"""

    def __init__(self, settings: Settings):
        """Initialize database manager state"""
        self.settings = settings
        self._engine = None
        self._SessionLocal = None
        self._lock = None

    def _get_connection_target(self) -> ConnectionTarget:
        """
        Resolve where the ledger lives.

        Returns:
            ConnectionTarget: URL plus the session serialization requirement

        Raises:
            ValueError: If required settings are missing
        """
        try:
            return DatabaseManager.resolve(self.settings)
        except ValueError as e:
            logger.error(f"Failed to resolve ledger database: {e}")
            raise

    def init(self) -> None:
        """
        Initialize database connection and create tables.
        """
        try:
            target = self._get_connection_target()
            if target.is_sqlite_memory:
                # One shared connection, otherwise every session sees its own empty database
                self._engine = create_engine(
                    target.url,
                    connect_args={"check_same_thread": False},
                    poolclass=StaticPool
                )
            else:
                self._engine = create_engine(target.url, pool_pre_ping=True)
            Base.metadata.create_all(self._engine)
            self._SessionLocal = sessionmaker(bind=self._engine, expire_on_commit=False)
            self._lock = threading.RLock() if target.serialize_sessions else None
            logger.info(f"Database initialized successfully ({self.settings.LEDGER_BACKEND} backend)")

        except SQLAlchemyError as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    @property
    def initialized(self) -> bool:
        return self._SessionLocal is not None

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations"""
        if not self._SessionLocal:
            raise RuntimeError("Database not initialized. Call init() first.")

        with self._lock if self._lock is not None else nullcontext():
            session = self._SessionLocal()
            try:
                yield session
                session.commit()
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

    def dispose(self) -> None:
        """
        Clean up database connections.
        Should be called during application shutdown.
        """
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._SessionLocal = None
            self._lock = None
