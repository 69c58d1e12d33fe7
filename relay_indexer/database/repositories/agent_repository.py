# relay_indexer/database/repositories/agent_repository.py

from typing import List

from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import DBAgent


class AgentRepository(BaseRepository[DBAgent]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBAgent)

    def get_or_create(self, session: Session, agent_id: str) -> DBAgent:
        agent = self.get_by_key(session, agent_id=agent_id)
        if agent is None:
            agent = DBAgent(agent_id=agent_id, is_active=True, last_event_block=0, last_log_index=-1)
            session.add(agent)
            session.flush()
        return agent

    def active_owner_addresses(self, session: Session) -> List[str]:
        rows = session.query(DBAgent.owner_address).filter(
            DBAgent.is_active.is_(True),
            DBAgent.owner_address.isnot(None),
        ).distinct().order_by(DBAgent.owner_address).all()
        return [row[0] for row in rows]
