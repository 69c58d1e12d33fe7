# relay_indexer/database/repositories/trade_repository.py

from typing import List, Optional

from sqlalchemy.orm import Session

from ..base_repository import BaseRepository
from ..tables import DBPositionEvent, DBTrade
from ..types import TradeStatus


class TradeRepository(BaseRepository[DBTrade]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBTrade)

    def get_or_create(self, session: Session, position_key: str) -> DBTrade:
        trade = self.get_by_key(session, position_key=position_key.lower())
        if trade is None:
            trade = DBTrade(position_key=position_key.lower(), status=TradeStatus.OPEN)
            session.add(trade)
            session.flush()
        return trade

    def open_positions(self, session: Session, user_address: Optional[str] = None) -> List[DBTrade]:
        query = session.query(DBTrade).filter(DBTrade.status == TradeStatus.OPEN)
        if user_address:
            query = query.filter(DBTrade.user_address == user_address.lower())
        return query.all()


class PositionEventRepository(BaseRepository[DBPositionEvent]):
    def __init__(self, db_manager):
        super().__init__(db_manager, DBPositionEvent)
