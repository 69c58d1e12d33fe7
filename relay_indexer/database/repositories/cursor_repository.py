# relay_indexer/database/repositories/cursor_repository.py

from typing import List, Optional

from ..base_repository import BaseRepository
from ..tables import DBIndexerCursor
from ...core.logging import DEBUG, IndexerLogger, log_with_context


class CursorRepository(BaseRepository[DBIndexerCursor]):
    """
    Per-job cursor store.

    Unlike the domain repositories, every call here runs in its own
    transaction: a cursor write is the commit point of a run and must
    never ride along with event writes.
    """

    def __init__(self, db_manager):
        super().__init__(db_manager, DBIndexerCursor)
        self.logger = IndexerLogger.get_logger('database.repositories.cursor')

    def get_last_block(self, job_name: str) -> Optional[int]:
        with self.db_manager.get_session() as session:
            cursor = self.get_by_key(session, job_name=job_name)
            return cursor.last_block if cursor else None

    def advance(self, job_name: str, block: int) -> int:
        """Monotonic write: the stored value becomes max(existing, block)."""
        with self.db_manager.get_transaction() as session:
            cursor = self.get_by_key(session, job_name=job_name)
            if cursor is None:
                cursor = DBIndexerCursor(job_name=job_name)
                session.add(cursor)
            previous = cursor.last_block
            cursor.advance_to(block)
            session.flush()
            stored = cursor.last_block

        log_with_context(self.logger, DEBUG, "Cursor advanced",
                         job_name=job_name, previous=previous, to_block=stored)
        return stored

    def touch(self, job_name: str) -> None:
        with self.db_manager.get_transaction() as session:
            cursor = self.get_by_key(session, job_name=job_name)
            if cursor is None:
                cursor = DBIndexerCursor(job_name=job_name)
                session.add(cursor)
            cursor.touch()

    def list_all(self) -> List[DBIndexerCursor]:
        with self.db_manager.get_session() as session:
            return session.query(DBIndexerCursor).order_by(DBIndexerCursor.job_name).all()
