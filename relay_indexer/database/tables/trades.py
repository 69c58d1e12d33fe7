# relay_indexer/database/tables/trades.py

from sqlalchemy import Column, Enum, Integer, String

from ..base import DBBaseModel, DBEventLogModel
from ..types import (
    EvmAddressType, EvmHashType, PositionEventType, TokenAmountType, TradeSide, TradeStatus,
)


class DBTrade(DBBaseModel):
    __tablename__ = 'trades'

    position_key = Column(EvmHashType(), primary_key=True)
    user_address = Column(EvmAddressType(), nullable=True, index=True)
    pair = Column(String(64), nullable=True, index=True)
    side = Column(Enum(TradeSide, native_enum=False), nullable=True)
    leverage = Column(Integer, nullable=True)
    size_usd = Column(TokenAmountType(), nullable=True)
    entry_price = Column(TokenAmountType(), nullable=True)
    exit_price = Column(TokenAmountType(), nullable=True)
    liquidation_price = Column(TokenAmountType(), nullable=True)
    pnl_usd = Column(TokenAmountType(), nullable=True)
    status = Column(Enum(TradeStatus, native_enum=False), nullable=False,
                    default=TradeStatus.OPEN, index=True)
    tx_hash_open = Column(EvmHashType(), nullable=True)
    tx_hash_close = Column(EvmHashType(), nullable=True)
    opened_at = Column(Integer, nullable=True)
    closed_at = Column(Integer, nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status == TradeStatus.OPEN


class DBPositionEvent(DBEventLogModel):
    __tablename__ = 'position_events'

    position_key = Column(EvmHashType(), nullable=False, index=True)
    event_type = Column(Enum(PositionEventType, native_enum=False), nullable=False)
