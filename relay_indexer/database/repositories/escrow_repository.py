# relay_indexer/database/repositories/escrow_repository.py

from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import DBAgentEarnings, DBEscrowSession, DBEscrowSessionAgent, DBEscrowSessionEvent


class EscrowSessionRepository(BaseRepository[DBEscrowSession]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBEscrowSession)

    def get_or_create(self, session: Session, session_id: str) -> DBEscrowSession:
        """Sessions created before the indexed range still need a row to accumulate into"""
        record = self.get_by_key(session, session_id=session_id)
        if record is None:
            record = DBEscrowSession(
                session_id=session_id, max_spend=0, deposited=0, released=0, refunded=0, is_active=True,
            )
            session.add(record)
            session.flush()
        return record


class EscrowEventRepository(BaseRepository[DBEscrowSessionEvent]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBEscrowSessionEvent)


class SessionAgentRepository(BaseRepository[DBEscrowSessionAgent]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBEscrowSessionAgent)


class AgentEarningsRepository(BaseRepository[DBAgentEarnings]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBAgentEarnings)

    def increment(self, session: Session, agent_address: str, amount: int) -> DBAgentEarnings:
        record = self.get_by_key(session, agent_address=agent_address.lower())
        if record is None:
            record = DBAgentEarnings(agent_address=agent_address.lower(), total_earned=0, payment_count=0)
            session.add(record)
        record.total_earned = (record.total_earned or 0) + amount
        record.payment_count = (record.payment_count or 0) + 1
        session.flush()
        return record
