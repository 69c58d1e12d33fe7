# relay_indexer/database/base_repository.py

from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..core.logging import IndexerLogger

T = TypeVar('T')


class BaseRepository(Generic[T]):
    """Key-based access to one table. Callers own the session / transaction."""

    def __init__(self, db_manager, model_class: Type[T]):
        self.db_manager = db_manager
        self.model_class = model_class
        self.logger = IndexerLogger.get_logger(f'database.repository.{model_class.__name__.lower()}')

    def _key_filter(self, key: Dict[str, Any]):
        return [getattr(self.model_class, column) == value for column, value in key.items()]

    def get_by_key(self, session: Session, **key) -> Optional[T]:
        return session.query(self.model_class).filter(*self._key_filter(key)).first()

    def exists(self, session: Session, **key) -> bool:
        return self.get_by_key(session, **key) is not None

    def upsert(self, session: Session, key: Dict[str, Any], **fields) -> Tuple[T, bool]:
        """Insert-or-update by natural key. Returns the row and whether it was created."""
        try:
            record = self.get_by_key(session, **key)
            if record is None:
                record = self.model_class(**key, **fields)
                session.add(record)
                session.flush()
                return record, True

            for column, value in fields.items():
                setattr(record, column, value)
            session.flush()
            return record, False

        except Exception as e:
            self.logger.error(f"Error upserting {self.model_class.__name__} {key}: {e}")
            raise

    def insert_if_absent(self, session: Session, key: Dict[str, Any], **fields) -> Tuple[T, bool]:
        """Append-only insert: an existing row is returned untouched."""
        record = self.get_by_key(session, **key)
        if record is not None:
            return record, False
        record = self.model_class(**key, **fields)
        session.add(record)
        session.flush()
        return record, True

    def get_all(self, session: Session, limit: int = 100) -> List[T]:
        return session.query(self.model_class).order_by(
            desc(self.model_class.created_at)
        ).limit(limit).all()

    def count(self, session: Session) -> int:
        return session.query(self.model_class).count()
