"""Database connection and session management.

DatabaseManager is the storage boundary used by the migration: short read
queries and units of work that commit or roll back as a whole.
"""

import logging
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, TypeVar

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from ..constants import DB_CONNECT_RETRIES, DB_CONNECT_RETRY_DELAY
from .models import Base

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DatabaseManager:
    """Owns the SQLAlchemy engine and hands out transactional sessions."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        engine: Optional[Engine] = None,
        **engine_kwargs: Any,
    ):
        """Initialize the manager.

        Args:
            database_url: SQLAlchemy URL, used when no engine is given
            engine: Existing engine to reuse (e.g. alembic's bind)
            **engine_kwargs: Extra create_engine() arguments
        """
        if engine is None:
            if not database_url:
                raise ValueError("DatabaseManager requires a database_url or an engine")
            engine_kwargs.setdefault("pool_pre_ping", True)
            engine = create_engine(database_url, **engine_kwargs)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_db(self) -> None:
        """Create all tables.

        Tests and local development only. In production the tables already
        exist, created by the application's own schema revisions.
        """
        Base.metadata.create_all(self._engine)
        logger.info("Database tables created")

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Yield a session that commits on success and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def execute_transaction(self, unit_of_work: Callable[[Session], T]) -> T:
        """Run ``unit_of_work(session)`` as one atomic unit and return its result."""
        with self.get_session() as session:
            return unit_of_work(session)

    def query(self, statement) -> List[Any]:
        """Execute a read-only select and return all rows."""
        with self.get_session() as session:
            return list(session.execute(statement).all())

    def dispose(self) -> None:
        self._engine.dispose()


def get_database_manager(database_url: Optional[str] = None) -> DatabaseManager:
    """Build a DatabaseManager from settings when no URL is given."""
    if database_url is None:
        from ...setting import get_settings
        database_url = get_settings().require_database_url()
    return DatabaseManager(database_url)


def wait_for_db(
    db_manager: DatabaseManager,
    retries: int = DB_CONNECT_RETRIES,
    delay: float = DB_CONNECT_RETRY_DELAY,
) -> bool:
    """Wait until the database answers ``SELECT 1``.

    Returns:
        True once connected, False after all retries are exhausted.
    """
    for attempt in range(1, retries + 1):
        try:
            with db_manager.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database connection established")
            return True
        except OperationalError as e:
            logger.warning(f"Database not ready (attempt {attempt}/{retries}): {e}")
            if attempt < retries:
                time.sleep(delay)
    logger.error(f"Database unavailable after {retries} attempts")
    return False
