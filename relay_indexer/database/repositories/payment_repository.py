# relay_indexer/database/repositories/payment_repository.py

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import DBPayment, DBPaymentEvent
from ..types import PaymentStatus


class PaymentEventRepository(BaseRepository[DBPaymentEvent]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBPaymentEvent)


class PaymentRepository(BaseRepository[DBPayment]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBPayment)

    def settled_without_block(self, session: Session, limit: int) -> List[DBPayment]:
        return session.query(DBPayment).filter(
            DBPayment.status == PaymentStatus.SETTLED,
            DBPayment.block_number == 0,
            DBPayment.tx_hash.isnot(None),
        ).order_by(DBPayment.created_at).limit(limit).all()

    def outcome_counts(self, session: Session, address: str) -> Tuple[int, int]:
        """(successful, failed) counts of payments received by ``address``"""
        rows = session.query(DBPayment.status, func.count()).filter(
            DBPayment.to_address == address.lower()
        ).group_by(DBPayment.status).all()
        counts = {status: count for status, count in rows}
        return counts.get(PaymentStatus.SETTLED, 0), counts.get(PaymentStatus.FAILED, 0)

    def get_by_tx_hash(self, session: Session, tx_hash: str) -> Optional[DBPayment]:
        return session.query(DBPayment).filter(DBPayment.tx_hash == tx_hash.lower()).first()
