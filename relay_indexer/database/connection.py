# relay_indexer/database/connection.py

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from .base import Base
from ..core.errors import StateStoreError
from ..core.logging import DEBUG, ERROR, INFO, IndexerLogger, log_with_context
from ..types.config import DatabaseConfig

# Errors that mean the store itself is unreachable, as opposed to a bad row
CONNECTIVITY_ERRORS = (OperationalError, InterfaceError)


class DatabaseManager:
    def __init__(self, config: DatabaseConfig):
        if not config:
            raise ValueError("DatabaseConfig is required")

        self.config = config
        self.logger = IndexerLogger.get_logger(f'database.{self.__class__.__name__.lower()}')
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

        log_with_context(self.logger, DEBUG, "DatabaseManager created",
                         db_url_host=self._extract_host_from_url(config.url))

    def _extract_host_from_url(self, url: str) -> str:
        if '@' in url and '/' in url:
            after_at = url.split('@', 1)[1]
            return after_at.split('/')[0]
        if url.startswith('sqlite'):
            return 'sqlite'
        return "unknown"

    @property
    def is_sqlite(self) -> bool:
        return self.config.url.startswith('sqlite')

    def _engine_kwargs(self) -> dict:
        if self.is_sqlite:
            kwargs = {'connect_args': {'check_same_thread': False}}
            if ':memory:' in self.config.url or self.config.url in ('sqlite://', 'sqlite:///'):
                kwargs['poolclass'] = StaticPool
            return kwargs

        return {
            'poolclass': QueuePool,
            'pool_size': self.config.pool_size,
            'max_overflow': self.config.max_overflow,
            'pool_timeout': 30,
            'pool_recycle': 3600,
            'pool_pre_ping': True,
        }

    def initialize(self) -> None:
        if self._engine is not None:
            self.logger.warning("Database already initialized")
            return

        self.logger.info("Initializing database engine")
        try:
            self._engine = create_engine(self.config.url, echo=self.config.echo, **self._engine_kwargs())
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))

        except CONNECTIVITY_ERRORS as e:
            log_with_context(self.logger, ERROR, "Failed to initialize database", error=str(e))
            self._engine = None
            self._session_factory = None
            raise StateStoreError(f"Database unreachable: {e}") from e

        log_with_context(self.logger, INFO, "Database initialized",
                         db_url_host=self._extract_host_from_url(self.config.url))

    def create_all(self) -> None:
        from . import tables  # noqa: F401  registers every table on Base.metadata
        Base.metadata.create_all(self.engine)

    def shutdown(self) -> None:
        self.logger.info("Shutting down database connections")
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
        self._session_factory = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self._session_factory

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        session = self.session_factory()
        try:
            yield session
        except CONNECTIVITY_ERRORS as e:
            session.rollback()
            log_with_context(self.logger, ERROR, "Database unavailable, rolling back",
                             error=str(e),
                             exception_type=type(e).__name__)
            raise StateStoreError(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def get_transaction(self) -> Generator[Session, None, None]:
        with self.get_session() as session:
            yield session
            session.commit()
            log_with_context(self.logger, DEBUG, "Database transaction committed")

    def health_check(self) -> bool:
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
            return True
        except StateStoreError:
            return False
