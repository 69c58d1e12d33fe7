# relay_indexer/database/repositories/failed_event_repository.py

from typing import List, Optional

from sqlalchemy import func

from ..base_repository import BaseRepository
from ..tables import DBFailedEvent
from ...core.logging import IndexerLogger
from ...types.chain import ChainEvent


class FailedEventRepository(BaseRepository[DBFailedEvent]):
    """Ledger of events the cursor moved past without applying"""

    def __init__(self, db_manager):
        super().__init__(db_manager, DBFailedEvent)
        self.logger = IndexerLogger.get_logger('database.repositories.failed_event')

    def _key(self, job_name: str, event: ChainEvent) -> dict:
        return {
            'job_name': job_name,
            'tx_hash': event.transaction_hash.lower(),
            'log_index': event.log_index,
        }

    def record_failure(self, job_name: str, event: ChainEvent, error: str) -> None:
        with self.db_manager.get_transaction() as session:
            record = self.get_by_key(session, **self._key(job_name, event))
            if record is None:
                session.add(DBFailedEvent(
                    **self._key(job_name, event),
                    block_number=event.block_number,
                    event_name=event.event_name,
                    error=error,
                    attempts=1,
                    resolved=False,
                ))
            else:
                record.error = error
                record.attempts = (record.attempts or 0) + 1
                record.resolved = False

    def mark_resolved(self, job_name: str, event: ChainEvent) -> bool:
        with self.db_manager.get_transaction() as session:
            record = self.get_by_key(session, **self._key(job_name, event))
            if record is None or record.resolved:
                return False
            record.resolved = True
            return True

    def unresolved(self, job_name: Optional[str] = None, limit: int = 100) -> List[DBFailedEvent]:
        with self.db_manager.get_session() as session:
            query = session.query(DBFailedEvent).filter(DBFailedEvent.resolved.is_(False))
            if job_name:
                query = query.filter(DBFailedEvent.job_name == job_name)
            return query.order_by(DBFailedEvent.block_number, DBFailedEvent.log_index).limit(limit).all()

    def lowest_unresolved_block(self, job_name: str) -> Optional[int]:
        with self.db_manager.get_session() as session:
            return session.query(func.min(DBFailedEvent.block_number)).filter(
                DBFailedEvent.job_name == job_name,
                DBFailedEvent.resolved.is_(False),
            ).scalar()
