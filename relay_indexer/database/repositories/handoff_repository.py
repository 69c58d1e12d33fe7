# relay_indexer/database/repositories/handoff_repository.py

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import DBOnChainTransaction, DBPendingTransaction, DBPendingTxStateHistory
from ..types import PendingTxStatus

OPEN_STATUSES = (PendingTxStatus.PENDING, PendingTxStatus.BROADCAST)


class PendingTransactionRepository(BaseRepository[DBPendingTransaction]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBPendingTransaction)

    def open_transaction_ids(self, session: Session, limit: int) -> List[str]:
        rows = session.query(DBPendingTransaction.transaction_id).filter(
            DBPendingTransaction.status.in_(OPEN_STATUSES)
        ).order_by(DBPendingTransaction.created_at).limit(limit).all()
        return [row[0] for row in rows]


class StateHistoryRepository(BaseRepository[DBPendingTxStateHistory]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBPendingTxStateHistory)

    def record(self, session: Session, transaction_id: str, status: PendingTxStatus,
               details: Optional[Dict[str, Any]] = None) -> DBPendingTxStateHistory:
        entry = DBPendingTxStateHistory(transaction_id=transaction_id, status=status, details=details)
        session.add(entry)
        session.flush()
        return entry


class OnChainTransactionRepository(BaseRepository[DBOnChainTransaction]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBOnChainTransaction)
